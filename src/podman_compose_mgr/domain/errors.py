"""Error types shared across collaborator boundaries."""

from __future__ import annotations

from enum import Enum


class DiscoveryErrorKind(str, Enum):
    """Why one discovered file could not be used."""

    UNREADABLE = "unreadable"
    MALFORMED_COMPOSE = "malformed_compose"
    MALFORMED_QUADLET = "malformed_quadlet"


class JobErrorKind(str, Enum):
    """Why a build or pull job failed."""

    SPAWN_FAILED = "spawn_failed"
    NON_ZERO_EXIT = "non_zero_exit"
    MISSING_BUILD_FILE = "missing_build_file"
    WORKER_CRASHED = "worker_crashed"


class ComposeMgrError(Exception):
    """Base class for expected podman-compose-mgr failures."""


class ConfigError(ComposeMgrError):
    """Configuration could not be loaded or is invalid."""


class DiscoveryError(ComposeMgrError):
    """A scan could not run at all (bad root or bad pattern)."""


class RuntimeSpawnError(ComposeMgrError):
    """The container runtime binary could not be started."""
