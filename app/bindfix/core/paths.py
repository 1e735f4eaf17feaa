"""System path management for bindfix.

bindfix runs inside a container as part of its startup sequence, so every
location it touches is a fixed system path rather than an XDG user path.
Each one can be overridden through an environment variable for testing or
for images with a different layout.

Defaults:
- Workspace root: /workspace
- Config file: /etc/bindfix/config.toml
- Cron entries: /etc/cron.d/
- FUSE config: /etc/fuse.conf
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "bindfix"

DEFAULT_WORKSPACE_ROOT = Path("/workspace")
DEFAULT_CONFIG_PATH = Path("/etc") / APP_NAME / "config.toml"
DEFAULT_CRON_DIR = Path("/etc/cron.d")
DEFAULT_FUSE_CONF_PATH = Path("/etc/fuse.conf")

# Character device the kernel exposes for userspace filesystems
FUSE_DEVICE = Path("/dev/fuse")

# Unix socket the local syslog daemon listens on
SYSLOG_SOCKET = Path("/dev/log")


def _get_path(env_var: str, default: Path) -> Path:
    """Get a path respecting an environment variable override.

    Args:
        env_var: Environment variable name (e.g., "BINDFIX_CONFIG").
        default: Path used when the variable is unset or empty.

    Returns:
        Path from the environment, or the default.
    """
    value = os.environ.get(env_var)
    if value:
        return Path(value)
    return default


def get_config_path() -> Path:
    """Get the configuration file path.

    Returns:
        Path to /etc/bindfix/config.toml (or BINDFIX_CONFIG).
    """
    return _get_path("BINDFIX_CONFIG", DEFAULT_CONFIG_PATH)


def get_cron_dir() -> Path:
    """Get the directory holding scheduled job entries.

    Returns:
        Path to /etc/cron.d (or BINDFIX_CRON_DIR).
    """
    return _get_path("BINDFIX_CRON_DIR", DEFAULT_CRON_DIR)


def get_fuse_conf_path() -> Path:
    """Get the FUSE configuration file path.

    Returns:
        Path to /etc/fuse.conf (or BINDFIX_FUSE_CONF).
    """
    return _get_path("BINDFIX_FUSE_CONF", DEFAULT_FUSE_CONF_PATH)


def fuse_device_available() -> bool:
    """Check whether the FUSE device node exists.

    Containers only get /dev/fuse when started with ``--device /dev/fuse``.
    """
    return FUSE_DEVICE.exists()
