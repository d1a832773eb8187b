"""Immutable domain records produced by discovery and consumed by jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from podman_compose_mgr.domain.errors import DiscoveryErrorKind, JobErrorKind


@dataclass(frozen=True, slots=True)
class DiscoveredImage:
    """One image reference found in a compose or quadlet file."""

    image: str
    container: str | None
    source_dir: Path
    entry_path: Path
    has_build_file: bool = False


class InferenceSource(str, Enum):
    QUADLET = "quadlet"
    COMPOSE = "compose"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class DockerfileInference:
    """A Dockerfile plus the image name guessed from its neighbours."""

    dockerfile_path: Path
    source_dir: Path
    basename: str
    inferred_image: str | None
    inference_source: InferenceSource
    quadlet_basename: str | None = None
    total_dockerfiles_in_dir: int = 1
    neighbor_file_count: int = 0
    note: str | None = None


@dataclass(frozen=True, slots=True)
class DiscoveryIssue:
    """A file skipped during a scan."""

    kind: DiscoveryErrorKind
    path: Path
    detail: str


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Everything one discovery pass produced."""

    images: tuple[DiscoveredImage, ...] = ()
    dockerfiles: tuple[DockerfileInference, ...] = ()
    issues: tuple[DiscoveryIssue, ...] = ()


class JobAction(str, Enum):
    BUILD = "build"
    PULL = "pull"


@dataclass(frozen=True, slots=True)
class RebuildJobSpec:
    """What one worker should do. `dedup_key` identifies duplicate work."""

    image: str
    action: JobAction
    context_dir: Path
    dockerfile: Path | None = None
    build_args: tuple[str, ...] = ()
    no_cache: bool = False
    container: str | None = None
    entry_path: Path | None = None

    @property
    def dedup_key(self) -> str:
        return self.image


class JobState(str, Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class JobStatus:
    """Job status; `kind` and `reason` are only set for failures."""

    state: JobState
    kind: JobErrorKind | None = field(default=None)
    reason: str | None = field(default=None)

    @classmethod
    def running(cls) -> "JobStatus":
        return cls(JobState.RUNNING)

    @classmethod
    def succeeded(cls) -> "JobStatus":
        return cls(JobState.SUCCEEDED)

    @classmethod
    def failed(cls, kind: JobErrorKind, reason: str) -> "JobStatus":
        return cls(JobState.FAILED, kind=kind, reason=reason)

    @classmethod
    def cancelled(cls) -> "JobStatus":
        return cls(JobState.CANCELLED)

    @property
    def is_terminal(self) -> bool:
        return self.state is not JobState.RUNNING

    def label(self) -> str:
        if self.state is JobState.FAILED and self.reason:
            return f"failed: {self.reason}"
        return self.state.value
