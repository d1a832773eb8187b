"""Dataclass-based configuration schema for podman-compose-mgr."""

from dataclasses import dataclass, field


@dataclass(slots=True)
class ScanConfig:
    """Directory-tree discovery options."""

    root: str = "."
    include_patterns: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(default_factory=list)


@dataclass(slots=True)
class BuildConfig:
    """Container runtime options."""

    build_args: list[str] = field(default_factory=list)
    no_cache: bool = False
    runtime_binary: str = "podman"


@dataclass(slots=True)
class TuiConfig:
    """Interactive session options."""

    tick_interval: float = 0.25
    output_limit: int = 5000
    job_slots: int = 1
    auto_queue_all: bool = False
    one_shot: bool = False


@dataclass(slots=True)
class AppConfig:
    """Top-level application configuration."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    tui: TuiConfig = field(default_factory=TuiConfig)
    dry_run: bool = False
