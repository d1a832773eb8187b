"""Pure projection of the Model into a frame of styled text lines."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from podman_compose_mgr.domain.models import JobState
from podman_compose_mgr.mvu.keymap import HELP_LIST, HELP_OUTPUT
from podman_compose_mgr.mvu.model import (
    ExportModal,
    JOB_PANEL_LINES,
    Model,
    Phase,
    Screen,
    SPINNER_FRAMES,
    VIEW_ORDER,
    ViewPickerModal,
    WorkQueueModal,
    effective_output_offset,
    job_entries,
    job_lines,
    list_capacity,
    output_capacity,
)
from podman_compose_mgr.mvu.rows import row_details
from podman_compose_mgr.mvu.search import compile_pattern, match_spans


@dataclass(frozen=True, slots=True)
class Segment:
    text: str
    style: str = ""


Line = tuple[Segment, ...]
Frame = tuple[Line, ...]

_STATE_STYLES = {
    JobState.RUNNING: "yellow",
    JobState.SUCCEEDED: "green",
    JobState.FAILED: "bold red",
    JobState.CANCELLED: "magenta",
}


def _clip(value: str, width: int) -> str:
    if width <= 0:
        return ""
    if len(value) <= width:
        return value
    if width <= 3:
        return value[:width]
    return f"{value[: width - 3]}..."


def _clip_line(segments: Iterable[Segment], width: int) -> Line:
    """Clip a multi-segment line to `width` cells, marking the cut with '...'."""

    segments = tuple(segments)
    total = sum(len(segment.text) for segment in segments)
    if total <= width:
        return segments
    if len(segments) == 1:
        return (Segment(_clip(segments[0].text, width), segments[0].style),)
    room = max(0, width - 3) if width > 3 else width
    clipped: list[Segment] = []
    for segment in segments:
        if room <= 0:
            break
        piece = segment.text[:room]
        clipped.append(Segment(piece, segment.style))
        room -= len(piece)
    if width > 3:
        clipped.append(Segment("...", "dim"))
    return tuple(clipped)


def _plain(text: str, style: str = "") -> Line:
    return (Segment(text, style),)


def _spinner(model: Model) -> str:
    return SPINNER_FRAMES[model.spinner % len(SPINNER_FRAMES)] if model.busy else " "


def _header(model: Model) -> list[Line]:
    queue = model.queue
    counts = f"running {len(queue.running_ids())}  pending {len(queue.pending)}  done {len(model.history)}"
    title = (
        Segment(f"{_spinner(model)} podman-compose-mgr ", "bold"),
        Segment(f"[{model.view_mode.title}] ", "cyan"),
        Segment(counts, "dim"),
    )
    if model.phase is Phase.SCANNING:
        location = f"scanning {model.settings.root}"
    elif model.current_path:
        location = f"{model.settings.root}/{'/'.join(model.current_path)}"
    else:
        location = str(model.settings.root)
    if model.checked:
        location += f"  ({len(model.checked)} checked)"
    return [title, _plain(location, "dim")]


def _row_lines(model: Model, capacity: int) -> list[Line]:
    lines: list[Line] = []
    if not model.rows:
        empty = "Scanning..." if model.phase is Phase.SCANNING else "No images found"
        return [_plain(empty, "dim")]
    for index in range(model.scroll_offset, len(model.rows)):
        if len(lines) >= capacity:
            break
        row = model.rows[index]
        selected = index == model.selected
        mark = "[x]" if row.key in model.checked else "[ ]"
        if row.key in model.expanded:
            arrow = "v"
        elif row.dockerfile is not None or row.item is not None:
            arrow = ">"
        else:
            arrow = " "
        style = "reverse" if selected else ""
        if row.image is None and not selected:
            style = "dim"
        lines.append((Segment(f"{mark} {arrow} ", "bold" if selected else ""), Segment(row.label, style)))
        if row.key in model.expanded:
            for detail in row_details(row, model.settings.root):
                if len(lines) >= capacity:
                    break
                lines.append(_plain(f"      {detail}", "dim"))
    return lines


def _job_panel(model: Model) -> list[Line]:
    tail = JOB_PANEL_LINES - 1
    job = model.queue.get(model.viewed_job_id) if model.viewed_job_id is not None else None
    record = None
    if job is None:
        record = next((item for item in model.history if item.job_id == model.viewed_job_id), None)
    if job is None and record is None:
        return [_plain("-- no jobs --", "dim")]
    spec = job.spec if job is not None else record.spec
    status = job.status if job is not None else record.status
    title = (
        Segment(f"-- job #{model.viewed_job_id} {spec.action.value} {spec.image} ", "bold"),
        Segment(status.label(), _STATE_STYLES[status.state]),
    )
    lines = job_lines(model, model.viewed_job_id)[-tail:]
    return [title] + [_plain(line) for line in lines]


def _view_picker(modal: ViewPickerModal, model: Model) -> list[Line]:
    lines: list[Line] = [_plain("Select view (enter to apply, esc to close)", "bold")]
    for index, mode in enumerate(VIEW_ORDER):
        current = " *" if mode is model.view_mode else ""
        style = "reverse" if index == modal.index else ""
        lines.append(_plain(f"  {index + 1}. {mode.title}{current}", style))
    return lines


def _work_queue(modal: WorkQueueModal, model: Model) -> list[Line]:
    lines: list[Line] = [_plain("Jobs (enter to view output, esc to close)", "bold")]
    entries = job_entries(model)
    for index, entry in enumerate(entries):
        style = "reverse" if index == modal.index else ""
        lines.append(_plain(f"  #{entry.job_id} {entry.image}  {entry.label}", style))
    for spec in model.queue.pending:
        lines.append(_plain(f"  queued {spec.image}", "dim"))
    if len(lines) == 1:
        lines.append(_plain("  no jobs yet", "dim"))
    return lines


def _export_prompt(modal: ExportModal) -> list[Line]:
    return [
        _plain("Export job output to file (enter to save, esc to cancel)", "bold"),
        (Segment("  path: "), Segment(f"{modal.buffer}_", "reverse")),
    ]


def _modal_lines(model: Model) -> list[Line] | None:
    modal = model.modal
    if isinstance(modal, ViewPickerModal):
        return _view_picker(modal, model)
    if isinstance(modal, WorkQueueModal):
        return _work_queue(modal, model)
    if isinstance(modal, ExportModal):
        return _export_prompt(modal)
    return None


def _highlight(line: str, regex) -> Line:
    if regex is None:
        return _plain(line)
    segments: list[Segment] = []
    cursor = 0
    for start, end in match_spans(regex, line):
        if start > cursor:
            segments.append(Segment(line[cursor:start]))
        segments.append(Segment(line[start:end], "black on yellow"))
        cursor = end
    if cursor < len(line) or not segments:
        segments.append(Segment(line[cursor:]))
    return tuple(segments)


def _output_body(model: Model, capacity: int) -> list[Line]:
    lines = job_lines(model, model.viewed_job_id)
    start = effective_output_offset(model)
    regex = compile_pattern(model.search.pattern) if model.search.pattern else None
    return [_highlight(line, regex) for line in lines[start : start + capacity]]


def _output_header(model: Model) -> list[Line]:
    entry = next((item for item in job_entries(model) if item.job_id == model.viewed_job_id), None)
    if entry is None:
        return [_plain("No job selected", "bold"), _plain("")]
    lines = job_lines(model, model.viewed_job_id)
    start = effective_output_offset(model)
    position = f"lines {min(start + 1, len(lines))}-{min(start + output_capacity(model.height), len(lines))} of {len(lines)}"
    mode = "follow" if model.follow else "scroll"
    return [
        (Segment(f"{_spinner(model)} job #{entry.job_id} {entry.image} ", "bold"), Segment(entry.label, "cyan")),
        _plain(f"{position}  [{mode}]", "dim"),
    ]


def _footer(model: Model) -> list[Line]:
    if model.search.editing:
        prefix = "?" if model.search.backward else "/"
        prompt = (Segment(prefix, "bold"), Segment(f"{model.search.query}_", "reverse"))
        return [prompt, _plain(HELP_OUTPUT, "dim")]
    status_style = "bold red" if model.status.lower().startswith(("scan failed", "export failed", "invalid")) else ""
    help_text = HELP_OUTPUT if model.screen is Screen.OUTPUT else HELP_LIST
    return [_plain(model.status, status_style), _plain(help_text, "dim")]


def _pad(lines: list[Line], count: int) -> list[Line]:
    lines = lines[:count]
    return lines + [()] * (count - len(lines))


def render(model: Model) -> Frame:
    """Return the frame for `model`; at most `model.height` lines."""

    modal = _modal_lines(model)
    if model.screen is Screen.OUTPUT:
        capacity = output_capacity(model.height)
        body = modal if modal is not None else _output_body(model, capacity)
        lines = _output_header(model) + _pad(body, capacity) + _footer(model)
    else:
        capacity = list_capacity(model.height)
        body = modal if modal is not None else _row_lines(model, capacity)
        lines = _header(model) + _pad(body, capacity) + _pad(_job_panel(model), JOB_PANEL_LINES) + _footer(model)
    return tuple(_clip_line(line, model.width) for line in lines[: model.height])


def frame_text(frame: Frame) -> list[str]:
    """Plain text of each frame line."""

    return ["".join(segment.text for segment in line) for line in frame]
