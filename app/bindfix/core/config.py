"""Process-wide configuration for bindfix.

Configuration is read once per invocation and passed explicitly into each
component. Values come from three layers, highest priority first:

1. Environment variables (``BINDFS_ENABLED``, ``BINDFS_SKIP_PATHS``,
   ``FUSE_CLEANUP_DISABLE``, ``BINDFIX_WORKSPACE``, ``USERNAME``,
   ``BINDFIX_UID``, ``BINDFIX_GID``)
2. The optional TOML file at /etc/bindfix/config.toml
3. Built-in defaults

Malformed values never abort startup: they fall back to the nearest safe
default and a warning is logged.
"""

import grp
import logging
import os
import pwd
import tomllib
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from bindfix.core.paths import DEFAULT_WORKSPACE_ROOT, get_config_path

logger = logging.getLogger(__name__)


class OverlayMode(str, Enum):
    """How the overlay stage decides which mounts to fix.

    Attributes:
        AUTO: Classify each mount and probe unknown filesystems.
        ALWAYS: Overlay every eligible mount unconditionally.
        NEVER: Skip the overlay stage entirely.
    """

    AUTO = "auto"
    ALWAYS = "true"
    NEVER = "false"


# Environment variable -> config field
ENV_FIELDS: dict[str, str] = {
    "BINDFS_ENABLED": "mode",
    "BINDFS_SKIP_PATHS": "skip_paths",
    "FUSE_CLEANUP_DISABLE": "reaper_disabled",
    "BINDFIX_WORKSPACE": "workspace_root",
    "USERNAME": "user",
    "BINDFIX_GROUP": "group",
    "BINDFIX_UID": "uid",
    "BINDFIX_GID": "gid",
}


class BindfixConfig(BaseModel):
    """Settings shared by the overlay pipeline and the reaper.

    Attributes:
        mode: Overlay mode (auto, true, false).
        skip_paths: Paths excluded from the overlay stage, with descendants.
        reaper_disabled: Disable both the boot-time and scheduled reaper passes.
        workspace_root: Root under which mounts are considered.
        user: User name that overlay ownership is forced to.
        group: Group name that overlay ownership is forced to. Defaults to
            the user's primary group.
        uid: Numeric user ID for newly created files. Looked up from ``user``
            when unset.
        gid: Numeric group ID for newly created files. Looked up from ``user``
            when unset.
    """

    model_config = ConfigDict(extra="forbid")

    mode: Annotated[
        OverlayMode,
        Field(description="Overlay mode: auto, true or false"),
    ] = OverlayMode.AUTO
    skip_paths: Annotated[
        list[str],
        Field(description="Paths excluded from overlays (comma-separated in env)"),
    ] = []
    reaper_disabled: Annotated[
        bool,
        Field(description="Disable the FUSE artifact reaper"),
    ] = False
    workspace_root: Annotated[
        Path,
        Field(description="Workspace root scanned for mounts"),
    ] = DEFAULT_WORKSPACE_ROOT
    user: Annotated[
        str | None,
        Field(description="User name to force ownership to (None = current user)"),
    ] = None
    group: Annotated[
        str | None,
        Field(description="Group name to force ownership to (None = primary group)"),
    ] = None
    uid: Annotated[
        int | None,
        Field(ge=0, description="UID for created files (None = lookup)"),
    ] = None
    gid: Annotated[
        int | None,
        Field(ge=0, description="GID for created files (None = lookup)"),
    ] = None

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, v: object) -> OverlayMode:
        """Map any unrecognized mode to auto."""
        if isinstance(v, OverlayMode):
            return v
        if isinstance(v, bool):
            return OverlayMode.ALWAYS if v else OverlayMode.NEVER
        value = str(v).strip().lower()
        try:
            return OverlayMode(value)
        except ValueError:
            logger.warning("Unrecognized overlay mode %r, falling back to 'auto'", v)
            return OverlayMode.AUTO

    @field_validator("skip_paths", mode="before")
    @classmethod
    def _parse_skip_paths(cls, v: object) -> list[str]:
        """Accept a comma-separated string or a list of paths."""
        if v is None:
            return []
        items = v.split(",") if isinstance(v, str) else list(v)  # type: ignore[call-overload]
        return [str(item).strip() for item in items if str(item).strip()]

    @field_validator("reaper_disabled", mode="before")
    @classmethod
    def _parse_disable_flag(cls, v: object) -> bool:
        """Only an explicit "true" disables the reaper."""
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() == "true"

    @field_validator("workspace_root", mode="before")
    @classmethod
    def _parse_workspace_root(cls, v: object) -> Path:
        """Canonicalize the workspace root, keeping the default when blank."""
        value = str(v).strip() if v is not None else ""
        if not value:
            return DEFAULT_WORKSPACE_ROOT
        if not os.path.isabs(value):
            logger.warning("Workspace root %r is not absolute, using %s", v, DEFAULT_WORKSPACE_ROOT)
            return DEFAULT_WORKSPACE_ROOT
        return Path(os.path.normpath(value))

    @field_validator("uid", "gid", mode="before")
    @classmethod
    def _parse_id(cls, v: object, info: Any) -> int | None:
        """Parse numeric IDs, dropping malformed values back to lookup."""
        if v is None or v == "":
            return None
        try:
            value = int(str(v).strip())
        except ValueError:
            logger.warning("Ignoring non-numeric %s %r, using account lookup", info.field_name, v)
            return None
        if value < 0:
            logger.warning("Ignoring negative %s %r, using account lookup", info.field_name, v)
            return None
        return value

    @field_validator("user", "group", mode="before")
    @classmethod
    def _parse_name(cls, v: object) -> str | None:
        """Treat blank names as unset."""
        if v is None:
            return None
        name = str(v).strip()
        return name or None

    @property
    def effective_user(self) -> str:
        """Get the user name ownership is forced to.

        Returns:
            The configured user, or the name of the current process user.
        """
        if self.user:
            return self.user
        try:
            return pwd.getpwuid(os.getuid()).pw_name
        except KeyError:
            return str(os.getuid())

    def resolve_identity(self) -> tuple[int, int]:
        """Resolve the numeric UID and GID to force on created files.

        Explicit ``uid``/``gid`` settings win. Otherwise the IDs are looked
        up from the configured user; an unknown user falls back to the
        current process identity.

        Returns:
            Tuple of (uid, gid).
        """
        uid, gid = self.uid, self.gid
        if uid is None or gid is None:
            try:
                entry = pwd.getpwnam(self.effective_user)
                looked_up = (entry.pw_uid, entry.pw_gid)
            except KeyError:
                logger.warning(
                    "User %s not found, using current process identity", self.effective_user
                )
                looked_up = (os.getuid(), os.getgid())
            uid = looked_up[0] if uid is None else uid
            gid = looked_up[1] if gid is None else gid
        return uid, gid

    @property
    def effective_group(self) -> str:
        """Get the group name ownership is forced to.

        Returns:
            The configured group, the name of the resolved GID's group, or
            the user name when the group cannot be found.
        """
        if self.group:
            return self.group
        _, gid = self.resolve_identity()
        try:
            return grp.getgrgid(gid).gr_name
        except KeyError:
            return self.effective_user


class BindfixConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigParseError(BindfixConfigError):
    """Raised when the config file cannot be parsed."""


class ConfigValidationError(BindfixConfigError):
    """Raised when the config file content doesn't match the schema."""


def _read_config_file(path: Path) -> dict[str, Any]:
    """Read raw settings from a TOML config file.

    Args:
        path: Path to the config file.

    Returns:
        Dictionary of settings, empty when the file doesn't exist.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        BindfixConfigError: If the file cannot be read.
    """
    if not path.exists():
        return {}

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {path}: {e}") from e
    except OSError as e:
        raise BindfixConfigError(f"Failed to read config {path}: {e}") from e


def _read_environment(environ: Mapping[str, str]) -> dict[str, str]:
    """Collect recognized settings from environment variables.

    Args:
        environ: Environment mapping to read from.

    Returns:
        Dictionary of config field name to raw value.
    """
    return {field: environ[var] for var, field in ENV_FIELDS.items() if var in environ}


def load_config(
    environ: Mapping[str, str] | None = None,
    path: Path | None = None,
) -> BindfixConfig:
    """Load configuration from the config file and the environment.

    Args:
        environ: Environment mapping. If None, uses os.environ.
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated BindfixConfig object.

    Raises:
        ConfigParseError: If the config file has invalid TOML syntax.
        ConfigValidationError: If the config file content doesn't match the schema.
        BindfixConfigError: If the config file cannot be read.
    """
    env = os.environ if environ is None else environ
    config_path = path or get_config_path()

    data = _read_config_file(config_path)
    data.update(_read_environment(env))

    try:
        return BindfixConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid config content: {e}") from e


def load_config_or_default(environ: Mapping[str, str] | None = None) -> BindfixConfig:
    """Load configuration, degrading to environment-only settings on error.

    Used by the startup path, which must never abort on a broken config
    file.

    Args:
        environ: Environment mapping. If None, uses os.environ.

    Returns:
        BindfixConfig from file and environment, or from the environment
        alone if the file is unusable.
    """
    env = os.environ if environ is None else environ
    try:
        return load_config(env)
    except BindfixConfigError as e:
        logger.warning("Ignoring config file: %s", e)

    try:
        return BindfixConfig.model_validate(_read_environment(env))
    except ValidationError as e:
        logger.warning("Invalid environment configuration, using defaults: %s", e)
        return BindfixConfig()
