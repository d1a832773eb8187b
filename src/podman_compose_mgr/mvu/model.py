"""Application state for the interactive session.

The `Model` is a frozen dataclass. Only `update` produces new instances, via
`dataclasses.replace`, so every transition can be compared and replayed.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from podman_compose_mgr.config.schema import AppConfig
from podman_compose_mgr.domain.models import (
    DiscoveredImage,
    DiscoveryIssue,
    DockerfileInference,
)
from podman_compose_mgr.mvu.commands import StartDiscovery
from podman_compose_mgr.mvu.queue import JobQueue, JobRecord, normalize_job_slots
from podman_compose_mgr.mvu.search import SearchState


HEADER_LINES = 2
FOOTER_LINES = 2
JOB_PANEL_LINES = 6

SPINNER_FRAMES = ("|", "/", "-", "\\")


class ViewMode(str, Enum):
    IMAGE = "image"
    CONTAINER = "container"
    FOLDER = "folder"
    DOCKERFILE = "dockerfile"

    @property
    def title(self) -> str:
        return _VIEW_TITLES[self]


_VIEW_TITLES = {
    ViewMode.IMAGE: "By image",
    ViewMode.CONTAINER: "By container",
    ViewMode.FOLDER: "By folder",
    ViewMode.DOCKERFILE: "By Dockerfile",
}

VIEW_ORDER = (ViewMode.IMAGE, ViewMode.CONTAINER, ViewMode.FOLDER, ViewMode.DOCKERFILE)


class Phase(str, Enum):
    SCANNING = "scanning"
    READY = "ready"


class Screen(str, Enum):
    LIST = "list"
    OUTPUT = "output"


class RowKind(str, Enum):
    FOLDER = "folder"
    IMAGE = "image"
    CONTAINER = "container"
    DOCKERFILE = "dockerfile"


@dataclass(frozen=True, slots=True)
class Row:
    """One selectable line of the list screen."""

    key: str
    kind: RowKind
    label: str
    image: str | None = None
    item: DiscoveredImage | None = None
    dockerfile: DockerfileInference | None = None
    folder: str | None = None


@dataclass(frozen=True, slots=True)
class ViewPickerModal:
    index: int = 0


@dataclass(frozen=True, slots=True)
class WorkQueueModal:
    index: int = 0


@dataclass(frozen=True, slots=True)
class ExportModal:
    buffer: str = ""


Modal = ViewPickerModal | WorkQueueModal | ExportModal


@dataclass(frozen=True, slots=True)
class Settings:
    """Static session settings, fixed when the Model is created."""

    root: Path
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()
    build_args: tuple[str, ...] = ()
    no_cache: bool = False
    tick_interval: float = 0.25
    output_limit: int = 5000
    job_slots: int = 1
    auto_queue_all: bool = False
    one_shot: bool = False
    dry_run: bool = False

    @classmethod
    def from_config(cls, config: AppConfig) -> "Settings":
        return cls(
            root=Path(config.scan.root),
            include_patterns=tuple(config.scan.include_patterns),
            exclude_patterns=tuple(config.scan.exclude_patterns),
            build_args=tuple(config.build.build_args),
            no_cache=config.build.no_cache,
            tick_interval=max(0.05, config.tui.tick_interval),
            output_limit=max(0, config.tui.output_limit),
            job_slots=normalize_job_slots(config.tui.job_slots),
            auto_queue_all=config.tui.auto_queue_all,
            one_shot=config.tui.one_shot,
            dry_run=config.dry_run,
        )


@dataclass(frozen=True, slots=True)
class Model:
    settings: Settings
    view_mode: ViewMode = ViewMode.IMAGE
    phase: Phase = Phase.SCANNING
    screen: Screen = Screen.LIST
    images: tuple[DiscoveredImage, ...] = ()
    dockerfiles: tuple[DockerfileInference, ...] = ()
    issues: tuple[DiscoveryIssue, ...] = ()
    rows: tuple[Row, ...] = ()
    selected: int = 0
    scroll_offset: int = 0
    checked: frozenset[str] = frozenset()
    expanded: frozenset[str] = frozenset()
    current_path: tuple[str, ...] = ()
    width: int = 80
    height: int = 24
    queue: JobQueue = field(default_factory=JobQueue)
    history: tuple[JobRecord, ...] = ()
    viewed_job_id: int | None = None
    follow: bool = True
    output_offset: int = 0
    search: SearchState = SearchState()
    modal: Modal | None = None
    status: str = ""
    spinner: int = 0
    auto_queued: bool = False
    should_quit: bool = False

    @property
    def selected_row(self) -> Row | None:
        if 0 <= self.selected < len(self.rows):
            return self.rows[self.selected]
        return None

    @property
    def busy(self) -> bool:
        return self.phase is Phase.SCANNING or self.queue.has_running


def init(settings: Settings) -> tuple[Model, tuple[StartDiscovery]]:
    """Create the first Model and the discovery request that populates it."""

    model = Model(
        settings=settings,
        queue=JobQueue(slots=settings.job_slots),
        status="Scanning...",
    )
    command = StartDiscovery(
        root=settings.root,
        include_patterns=settings.include_patterns,
        exclude_patterns=settings.exclude_patterns,
    )
    return model, (command,)


def list_capacity(height: int) -> int:
    return max(1, height - HEADER_LINES - FOOTER_LINES - JOB_PANEL_LINES)


def output_capacity(height: int) -> int:
    return max(1, height - HEADER_LINES - FOOTER_LINES)


def clamp_scroll(selected: int, offset: int, capacity: int, row_count: int) -> int:
    """Return a scroll offset that keeps `selected` visible."""

    if row_count <= capacity:
        return 0
    if selected < offset:
        offset = selected
    elif selected >= offset + capacity:
        offset = selected - capacity + 1
    return max(0, min(offset, row_count - capacity))


def job_lines(model: Model, job_id: int | None) -> Sequence[str]:
    """Output of a running or finished job; live jobs return their `OutputLog`."""

    if job_id is None:
        return ()
    job = model.queue.get(job_id)
    if job is not None:
        return job.output
    for record in model.history:
        if record.job_id == job_id:
            return record.lines
    return ()


def output_max_offset(model: Model) -> int:
    lines = job_lines(model, model.viewed_job_id)
    return max(0, len(lines) - output_capacity(model.height))


def effective_output_offset(model: Model) -> int:
    """The first visible output line; follow mode pins it to the tail."""

    max_offset = output_max_offset(model)
    if model.follow:
        return max_offset
    return min(model.output_offset, max_offset)


@dataclass(frozen=True, slots=True)
class JobEntry:
    job_id: int
    image: str
    label: str


def job_entries(model: Model) -> tuple[JobEntry, ...]:
    """Jobs with output, running first and then most recently finished."""

    entries = [
        JobEntry(job.job_id, job.spec.image, job.status.label()) for job in model.queue.active
    ]
    entries.extend(
        JobEntry(record.job_id, record.spec.image, record.status.label())
        for record in reversed(model.history)
    )
    return tuple(entries)
