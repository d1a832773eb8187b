"""Messages: the closed set of events that enter `update`.

Each variant carries only what its transition needs, so `update` never has to
read the clock, the filesystem or a global flag.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from podman_compose_mgr.domain.models import JobStatus, RebuildJobSpec, ScanResult
from podman_compose_mgr.mvu.model import ViewMode


# Inputs from the outside world.


@dataclass(frozen=True, slots=True)
class UserInput:
    key: str
    character: str | None = None


@dataclass(frozen=True, slots=True)
class Tick:
    pass


@dataclass(frozen=True, slots=True)
class WindowResized:
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class Interrupt:
    pass


@dataclass(frozen=True, slots=True)
class Quit:
    pass


@dataclass(frozen=True, slots=True)
class StartScan:
    pass


@dataclass(frozen=True, slots=True)
class DiscoveryComplete:
    result: ScanResult
    error: str | None = None


@dataclass(frozen=True, slots=True)
class EnqueueJobs:
    specs: tuple[RebuildJobSpec, ...]


@dataclass(frozen=True, slots=True)
class JobOutputLine:
    job_id: int
    line: str


@dataclass(frozen=True, slots=True)
class JobCompleted:
    job_id: int
    status: JobStatus


@dataclass(frozen=True, slots=True)
class LogExported:
    path: Path
    line_count: int
    error: str | None = None


# Actions produced by the keymap.


@dataclass(frozen=True, slots=True)
class MoveCursor:
    delta: int


@dataclass(frozen=True, slots=True)
class MovePage:
    direction: int


@dataclass(frozen=True, slots=True)
class ToggleCheck:
    pass


@dataclass(frozen=True, slots=True)
class ToggleCheckAll:
    pass


@dataclass(frozen=True, slots=True)
class ExpandOrEnter:
    pass


@dataclass(frozen=True, slots=True)
class CollapseOrBack:
    pass


@dataclass(frozen=True, slots=True)
class OpenViewPicker:
    pass


@dataclass(frozen=True, slots=True)
class ViewPickerMove:
    delta: int


@dataclass(frozen=True, slots=True)
class ViewPickerAccept:
    pass


@dataclass(frozen=True, slots=True)
class SetViewMode:
    mode: ViewMode


@dataclass(frozen=True, slots=True)
class CloseModal:
    pass


@dataclass(frozen=True, slots=True)
class RebuildSelected:
    force_pull: bool = False


@dataclass(frozen=True, slots=True)
class ShowOutput:
    pass


@dataclass(frozen=True, slots=True)
class ShowList:
    pass


@dataclass(frozen=True, slots=True)
class ScrollOutput:
    """Scroll by `delta` lines; `to_top`/`to_bottom` jump instead."""

    delta: int = 0
    to_top: bool = False
    to_bottom: bool = False


@dataclass(frozen=True, slots=True)
class OpenWorkQueue:
    pass


@dataclass(frozen=True, slots=True)
class WorkQueueMove:
    delta: int


@dataclass(frozen=True, slots=True)
class WorkQueueAccept:
    pass


@dataclass(frozen=True, slots=True)
class SearchStart:
    backward: bool = False


@dataclass(frozen=True, slots=True)
class SearchInput:
    character: str


@dataclass(frozen=True, slots=True)
class SearchBackspace:
    pass


@dataclass(frozen=True, slots=True)
class SearchSubmit:
    pass


@dataclass(frozen=True, slots=True)
class SearchCancel:
    pass


@dataclass(frozen=True, slots=True)
class SearchStep:
    reverse: bool = False


@dataclass(frozen=True, slots=True)
class OpenExport:
    pass


@dataclass(frozen=True, slots=True)
class ExportInput:
    character: str


@dataclass(frozen=True, slots=True)
class ExportBackspace:
    pass


@dataclass(frozen=True, slots=True)
class ExportSubmit:
    pass


Message = (
    UserInput
    | Tick
    | WindowResized
    | Interrupt
    | Quit
    | StartScan
    | DiscoveryComplete
    | EnqueueJobs
    | JobOutputLine
    | JobCompleted
    | LogExported
    | MoveCursor
    | MovePage
    | ToggleCheck
    | ToggleCheckAll
    | ExpandOrEnter
    | CollapseOrBack
    | OpenViewPicker
    | ViewPickerMove
    | ViewPickerAccept
    | SetViewMode
    | CloseModal
    | RebuildSelected
    | ShowOutput
    | ShowList
    | ScrollOutput
    | OpenWorkQueue
    | WorkQueueMove
    | WorkQueueAccept
    | SearchStart
    | SearchInput
    | SearchBackspace
    | SearchSubmit
    | SearchCancel
    | SearchStep
    | OpenExport
    | ExportInput
    | ExportBackspace
    | ExportSubmit
)
