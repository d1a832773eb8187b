"""Side-effect requests returned by `update` and carried out by the executor."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from podman_compose_mgr.domain.models import RebuildJobSpec


@dataclass(frozen=True, slots=True)
class StartDiscovery:
    root: Path
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class StartJob:
    job_id: int
    spec: RebuildJobSpec


@dataclass(frozen=True, slots=True)
class CancelJob:
    job_id: int


@dataclass(frozen=True, slots=True)
class ExportLog:
    path: Path
    lines: tuple[str, ...]


Command = StartDiscovery | StartJob | CancelJob | ExportLog
