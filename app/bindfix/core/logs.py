"""Logging setup for bindfix.

Diagnostics go to stderr. Reaper decisions go to the system log under a
fixed tag so operators can follow scheduled passes, which have no terminal
attached. Without a syslog daemon they go to stderr instead.
"""

import logging
import logging.handlers
import sys

from bindfix.core.paths import SYSLOG_SOCKET

# Logger (and syslog tag) for reaper deletion/retention decisions
REAPER_LOG_NAME = "fuse-cleanup"

# Name of the stderr handler installed by configure_logging
CONSOLE_HANDLER_NAME = "bindfix-console"

# Name of the stderr handler used for reaper decisions when syslog is absent
AUDIT_FALLBACK_HANDLER_NAME = "bindfix-audit-stderr"

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure the root logger for CLI use.

    The reaper's audit logger is configured separately and does not
    propagate, so --quiet never hides its decisions.

    Args:
        verbose: Log INFO and above.
        quiet: Log only ERROR and above. Wins over verbose.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(CONSOLE_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logging.basicConfig(level=level, handlers=[handler], force=True)

    configure_audit_logging()


def configure_audit_logging() -> logging.Logger:
    """Route reaper decisions to syslog, or to stderr when syslog is absent.

    Replaces any handlers left by an earlier call. Records are emitted at
    INFO and above exactly once, through one of the two handlers.

    Returns:
        The configured audit logger.
    """
    audit = logging.getLogger(REAPER_LOG_NAME)
    for old in list(audit.handlers):
        audit.removeHandler(old)
        old.close()

    audit.setLevel(logging.INFO)
    audit.propagate = False

    if attach_syslog(audit) is None:
        fallback = logging.StreamHandler(sys.stderr)
        fallback.set_name(AUDIT_FALLBACK_HANDLER_NAME)
        fallback.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        audit.addHandler(fallback)
    return audit


def attach_syslog(target: logging.Logger) -> logging.Handler | None:
    """Route a logger's records to the local syslog daemon.

    Does nothing when no syslog socket exists, which is common in
    minimal containers.

    Args:
        target: Logger to attach the handler to.

    Returns:
        The attached handler, or None if syslog is unavailable.
    """
    if not SYSLOG_SOCKET.exists():
        return None

    for handler in target.handlers:
        if isinstance(handler, logging.handlers.SysLogHandler):
            return handler

    try:
        handler = logging.handlers.SysLogHandler(address=str(SYSLOG_SOCKET))
    except OSError:
        return None

    handler.ident = f"{REAPER_LOG_NAME}: "
    handler.setLevel(logging.INFO)
    target.addHandler(handler)
    target.setLevel(logging.INFO)
    return handler
