"""The transition function of the interactive session.

`update(model, message)` returns the next Model and the Commands to run.
It never performs I/O and never reads anything outside its arguments, so a
recorded message sequence replays to the same Model every time.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import replace
from pathlib import Path
import re

from podman_compose_mgr.domain.models import RebuildJobSpec
from podman_compose_mgr.mvu import messages as msg
from podman_compose_mgr.mvu.commands import CancelJob, Command, ExportLog, StartDiscovery, StartJob
from podman_compose_mgr.mvu.keymap import translate
from podman_compose_mgr.mvu.model import (
    ExportModal,
    Model,
    Phase,
    RowKind,
    Screen,
    SPINNER_FRAMES,
    VIEW_ORDER,
    ViewMode,
    ViewPickerModal,
    WorkQueueModal,
    clamp_scroll,
    effective_output_offset,
    job_entries,
    job_lines,
    list_capacity,
    output_max_offset,
)
from podman_compose_mgr.mvu.rows import project_rows, spec_for_row
from podman_compose_mgr.mvu.search import SearchState, compile_pattern, find_hits, first_hit, next_hit


Result = tuple[Model, tuple[Command, ...]]

NO_COMMANDS: tuple[Command, ...] = ()


# Helpers shared by several transitions.


def _with_rows(model: Model, *, keep_selection: bool = True) -> Model:
    rows = project_rows(
        model.view_mode,
        model.images,
        model.dockerfiles,
        model.settings.root,
        model.current_path,
    )
    selected = model.selected if keep_selection else 0
    selected = max(0, min(selected, len(rows) - 1)) if rows else 0
    keys = {row.key for row in rows}
    return replace(
        model,
        rows=rows,
        selected=selected,
        scroll_offset=clamp_scroll(selected, model.scroll_offset, list_capacity(model.height), len(rows)),
        checked=frozenset(key for key in model.checked if key in keys),
        expanded=frozenset(key for key in model.expanded if key in keys),
    )


def _select(model: Model, index: int) -> Model:
    if not model.rows:
        return model
    selected = max(0, min(index, len(model.rows) - 1))
    if selected == model.selected:
        return model
    offset = clamp_scroll(selected, model.scroll_offset, list_capacity(model.height), len(model.rows))
    return replace(model, selected=selected, scroll_offset=offset)


def _start_available(model: Model) -> Result:
    """Fill free slots from the pending queue."""

    queue = model.queue
    commands: list[Command] = []
    viewed = model.viewed_job_id
    while True:
        queue, job = queue.start_next()
        if job is None:
            break
        commands.append(StartJob(job.job_id, job.spec))
        if viewed is None or model.follow:
            viewed = job.job_id
    if not commands:
        return model, NO_COMMANDS
    return replace(model, queue=queue, viewed_job_id=viewed), tuple(commands)


def _enqueue(model: Model, specs: Iterable[RebuildJobSpec]) -> Result:
    """Fold specs into the queue one at a time; duplicates are refused."""

    queue = model.queue
    accepted: list[str] = []
    refused: list[str] = []
    for spec in specs:
        queue, ok = queue.enqueue(spec)
        (accepted if ok else refused).append(spec.image)
    parts = []
    if accepted:
        parts.append(f"Queued {len(accepted)} job(s)")
    if refused:
        parts.append(f"already queued: {', '.join(refused)}")
    status = "; ".join(parts) if parts else model.status
    model, commands = _start_available(replace(model, queue=queue, status=status))
    return model, commands


def _one_shot_done(model: Model) -> Model:
    if model.settings.one_shot and model.phase is Phase.READY and model.queue.is_idle:
        return replace(model, should_quit=True)
    return model


def _viewed_lines(model: Model) -> tuple[str, ...]:
    return tuple(job_lines(model, model.viewed_job_id))


# Inputs from the outside world.


def _on_user_input(model: Model, message: msg.UserInput) -> Result:
    translated = translate(model, message.key, message.character)
    if translated is None:
        return model, NO_COMMANDS
    return update(model, translated)


def _on_tick(model: Model, message: msg.Tick) -> Result:
    if not model.busy:
        return model, NO_COMMANDS
    return replace(model, spinner=(model.spinner + 1) % len(SPINNER_FRAMES)), NO_COMMANDS


def _on_window_resized(model: Model, message: msg.WindowResized) -> Result:
    width = max(1, message.width)
    height = max(1, message.height)
    offset = clamp_scroll(model.selected, model.scroll_offset, list_capacity(height), len(model.rows))
    return replace(model, width=width, height=height, scroll_offset=offset), NO_COMMANDS


def _on_interrupt(model: Model, message: msg.Interrupt) -> Result:
    running = model.queue.running_ids()
    if running:
        queue = model.queue
        for job_id in running:
            queue = queue.cancel(job_id)
        status = "Cancelling job; press Ctrl-C again to drop the queue"
        return replace(model, queue=queue, status=status), tuple(CancelJob(job_id) for job_id in running)
    if model.queue.active:
        dropped = len(model.queue.pending)
        return (
            replace(model, queue=model.queue.clear_pending(), status=f"Dropped {dropped} pending job(s)"),
            NO_COMMANDS,
        )
    return replace(model, should_quit=True), NO_COMMANDS


def _on_quit(model: Model, message: msg.Quit) -> Result:
    running = model.queue.running_ids()
    queue = model.queue.clear_pending()
    for job_id in running:
        queue = queue.cancel(job_id)
    return replace(model, queue=queue, should_quit=True), tuple(CancelJob(job_id) for job_id in running)


def _on_start_scan(model: Model, message: msg.StartScan) -> Result:
    if model.phase is Phase.SCANNING:
        return replace(model, status="Scan already running"), NO_COMMANDS
    settings = model.settings
    command = StartDiscovery(settings.root, settings.include_patterns, settings.exclude_patterns)
    return replace(model, phase=Phase.SCANNING, status="Scanning..."), (command,)


def _on_discovery_complete(model: Model, message: msg.DiscoveryComplete) -> Result:
    if message.error is not None:
        model = replace(model, phase=Phase.READY, status=f"Scan failed: {message.error}")
        return _one_shot_done(model), NO_COMMANDS

    result = message.result
    model = replace(
        model,
        phase=Phase.READY,
        images=result.images,
        dockerfiles=result.dockerfiles,
        issues=result.issues,
    )
    model = _with_rows(model)
    if model.view_mode is ViewMode.FOLDER and model.current_path and not model.rows:
        model = _with_rows(replace(model, current_path=()), keep_selection=False)

    status = f"Found {len(result.images)} image reference(s), {len(result.dockerfiles)} Dockerfile(s)"
    if result.issues:
        status += f"; skipped {len(result.issues)} file(s): {result.issues[0].path.name} ({result.issues[0].kind.value})"
    model = replace(model, status=status)

    commands: tuple[Command, ...] = NO_COMMANDS
    if model.settings.auto_queue_all and not model.auto_queued:
        rows = project_rows(ViewMode.IMAGE, model.images, model.dockerfiles, model.settings.root)
        specs = [spec for spec in (spec_for_row(row, model.settings) for row in rows) if spec is not None]
        model, commands = _enqueue(replace(model, auto_queued=True), specs)
    return _one_shot_done(model), commands


def _on_enqueue_jobs(model: Model, message: msg.EnqueueJobs) -> Result:
    return _enqueue(model, message.specs)


def _on_job_output_line(model: Model, message: msg.JobOutputLine) -> Result:
    job = model.queue.get(message.job_id)
    if job is None or not job.is_running:
        return model, NO_COMMANDS
    queue = model.queue.append_line(message.job_id, message.line, model.settings.output_limit)
    return replace(model, queue=queue), NO_COMMANDS


def _on_job_completed(model: Model, message: msg.JobCompleted) -> Result:
    queue, record = model.queue.finish(message.job_id, message.status)
    if record is None:
        return model, NO_COMMANDS
    model = replace(
        model,
        queue=queue,
        history=model.history + (record,),
        status=f"{record.spec.image}: {record.status.label()}",
    )
    if model.should_quit:
        return model, NO_COMMANDS
    model, commands = _start_available(model)
    return _one_shot_done(model), commands


def _on_log_exported(model: Model, message: msg.LogExported) -> Result:
    if message.error is not None:
        return replace(model, status=f"Export failed: {message.error}"), NO_COMMANDS
    return replace(model, status=f"Exported {message.line_count} line(s) to {message.path}"), NO_COMMANDS


# List navigation.


def _on_move_cursor(model: Model, message: msg.MoveCursor) -> Result:
    return _select(model, model.selected + message.delta), NO_COMMANDS


def _on_move_page(model: Model, message: msg.MovePage) -> Result:
    step = list_capacity(model.height) * message.direction
    return _select(model, model.selected + step), NO_COMMANDS


def _on_toggle_check(model: Model, message: msg.ToggleCheck) -> Result:
    row = model.selected_row
    if row is None:
        return model, NO_COMMANDS
    if row.kind is RowKind.FOLDER:
        return replace(model, status="Folders cannot be checked"), NO_COMMANDS
    checked = model.checked ^ {row.key}
    return _select(replace(model, checked=checked), model.selected + 1), NO_COMMANDS


def _on_toggle_check_all(model: Model, message: msg.ToggleCheckAll) -> Result:
    keys = frozenset(row.key for row in model.rows if row.kind is not RowKind.FOLDER)
    checked = frozenset() if keys and keys <= model.checked else keys
    return replace(model, checked=checked), NO_COMMANDS


def _on_expand_or_enter(model: Model, message: msg.ExpandOrEnter) -> Result:
    row = model.selected_row
    if row is None:
        return model, NO_COMMANDS
    if row.kind is RowKind.FOLDER and row.folder is not None:
        entered = replace(model, current_path=model.current_path + (row.folder,), selected=0, scroll_offset=0)
        return _with_rows(entered, keep_selection=False), NO_COMMANDS
    return replace(model, expanded=model.expanded ^ {row.key}), NO_COMMANDS


def _on_collapse_or_back(model: Model, message: msg.CollapseOrBack) -> Result:
    row = model.selected_row
    if row is not None and row.key in model.expanded:
        return replace(model, expanded=model.expanded - {row.key}), NO_COMMANDS
    if model.view_mode is ViewMode.FOLDER and model.current_path:
        left = model.current_path[-1]
        parent = _with_rows(replace(model, current_path=model.current_path[:-1]), keep_selection=False)
        for index, candidate in enumerate(parent.rows):
            if candidate.kind is RowKind.FOLDER and candidate.folder == left:
                return _select(parent, index), NO_COMMANDS
        return parent, NO_COMMANDS
    return model, NO_COMMANDS


def _on_open_view_picker(model: Model, message: msg.OpenViewPicker) -> Result:
    return replace(model, modal=ViewPickerModal(VIEW_ORDER.index(model.view_mode))), NO_COMMANDS


def _on_view_picker_move(model: Model, message: msg.ViewPickerMove) -> Result:
    if not isinstance(model.modal, ViewPickerModal):
        return model, NO_COMMANDS
    index = (model.modal.index + message.delta) % len(VIEW_ORDER)
    return replace(model, modal=ViewPickerModal(index)), NO_COMMANDS


def _on_view_picker_accept(model: Model, message: msg.ViewPickerAccept) -> Result:
    if not isinstance(model.modal, ViewPickerModal):
        return model, NO_COMMANDS
    return update(model, msg.SetViewMode(VIEW_ORDER[model.modal.index]))


def _on_set_view_mode(model: Model, message: msg.SetViewMode) -> Result:
    model = replace(
        model,
        modal=None,
        view_mode=message.mode,
        current_path=(),
        checked=frozenset(),
        expanded=frozenset(),
        selected=0,
        scroll_offset=0,
        status=message.mode.title,
    )
    return _with_rows(model, keep_selection=False), NO_COMMANDS


def _on_close_modal(model: Model, message: msg.CloseModal) -> Result:
    return replace(model, modal=None), NO_COMMANDS


def _on_rebuild_selected(model: Model, message: msg.RebuildSelected) -> Result:
    if model.checked:
        rows = [row for row in model.rows if row.key in model.checked]
    elif model.selected_row is not None:
        rows = [model.selected_row]
    else:
        return replace(model, status="Nothing selected"), NO_COMMANDS

    specs = []
    missing = []
    for row in rows:
        spec = spec_for_row(row, model.settings, force_pull=message.force_pull)
        if spec is None:
            missing.append(row.label)
        else:
            specs.append(spec)
    if not specs:
        return replace(model, status=f"No image for: {', '.join(missing)}"), NO_COMMANDS
    model, commands = _enqueue(replace(model, checked=frozenset()), specs)
    if missing:
        model = replace(model, status=f"{model.status}; no image for: {', '.join(missing)}")
    return model, commands


# Output screen.


def _on_show_output(model: Model, message: msg.ShowOutput) -> Result:
    if model.viewed_job_id is None:
        return replace(model, status="No job output yet"), NO_COMMANDS
    return replace(model, screen=Screen.OUTPUT), NO_COMMANDS


def _on_show_list(model: Model, message: msg.ShowList) -> Result:
    return replace(model, screen=Screen.LIST, search=replace(model.search, editing=False)), NO_COMMANDS


def _on_scroll_output(model: Model, message: msg.ScrollOutput) -> Result:
    max_offset = output_max_offset(model)
    if message.to_top:
        return replace(model, output_offset=0, follow=max_offset == 0), NO_COMMANDS
    if message.to_bottom:
        return replace(model, output_offset=max_offset, follow=True), NO_COMMANDS
    offset = max(0, min(effective_output_offset(model) + message.delta, max_offset))
    return replace(model, output_offset=offset, follow=offset >= max_offset), NO_COMMANDS


def _on_open_work_queue(model: Model, message: msg.OpenWorkQueue) -> Result:
    entries = job_entries(model)
    index = 0
    for position, entry in enumerate(entries):
        if entry.job_id == model.viewed_job_id:
            index = position
    return replace(model, modal=WorkQueueModal(index)), NO_COMMANDS


def _on_work_queue_move(model: Model, message: msg.WorkQueueMove) -> Result:
    if not isinstance(model.modal, WorkQueueModal):
        return model, NO_COMMANDS
    count = len(job_entries(model))
    if count == 0:
        return model, NO_COMMANDS
    index = max(0, min(model.modal.index + message.delta, count - 1))
    return replace(model, modal=WorkQueueModal(index)), NO_COMMANDS


def _on_work_queue_accept(model: Model, message: msg.WorkQueueAccept) -> Result:
    if not isinstance(model.modal, WorkQueueModal):
        return model, NO_COMMANDS
    entries = job_entries(model)
    if not entries:
        return replace(model, modal=None), NO_COMMANDS
    entry = entries[min(model.modal.index, len(entries) - 1)]
    return (
        replace(
            model,
            modal=None,
            viewed_job_id=entry.job_id,
            screen=Screen.OUTPUT,
            follow=True,
            search=SearchState(),
        ),
        NO_COMMANDS,
    )


def _on_search_start(model: Model, message: msg.SearchStart) -> Result:
    if model.screen is not Screen.OUTPUT:
        return model, NO_COMMANDS
    search = replace(model.search, editing=True, query="", backward=message.backward)
    return replace(model, search=search), NO_COMMANDS


def _on_search_input(model: Model, message: msg.SearchInput) -> Result:
    if not model.search.editing:
        return model, NO_COMMANDS
    return replace(model, search=replace(model.search, query=model.search.query + message.character)), NO_COMMANDS


def _on_search_backspace(model: Model, message: msg.SearchBackspace) -> Result:
    if not model.search.editing:
        return model, NO_COMMANDS
    return replace(model, search=replace(model.search, query=model.search.query[:-1])), NO_COMMANDS


def _on_search_cancel(model: Model, message: msg.SearchCancel) -> Result:
    return replace(model, search=replace(model.search, editing=False, query="")), NO_COMMANDS


def _jump_to(model: Model, line: int) -> Model:
    max_offset = output_max_offset(model)
    offset = max(0, min(line, max_offset))
    return replace(model, output_offset=offset, follow=False)


def _on_search_submit(model: Model, message: msg.SearchSubmit) -> Result:
    query = model.search.query
    if not query:
        return replace(model, search=replace(model.search, editing=False)), NO_COMMANDS
    try:
        regex = compile_pattern(query)
    except re.error as exc:
        return replace(model, search=SearchState(), status=f"Invalid pattern: {exc}"), NO_COMMANDS

    hits = find_hits(regex, _viewed_lines(model))
    backward = model.search.backward
    current = first_hit(hits, effective_output_offset(model), backward=backward)
    search = SearchState(pattern=query, backward=backward, hits=hits, current=current)
    if current is None:
        return replace(model, search=search, status=f"Pattern not found: {query}"), NO_COMMANDS
    model = _jump_to(replace(model, search=search), current)
    return replace(model, status=f"Match {hits.index(current) + 1}/{len(hits)}"), NO_COMMANDS


def _on_search_step(model: Model, message: msg.SearchStep) -> Result:
    search = model.search
    if search.pattern is None:
        return replace(model, status="No previous search"), NO_COMMANDS
    hits = find_hits(compile_pattern(search.pattern), _viewed_lines(model))
    origin = search.current if search.current is not None else effective_output_offset(model)
    current = next_hit(hits, origin, backward=search.backward != message.reverse)
    search = replace(search, hits=hits, current=current)
    if current is None:
        return replace(model, search=search, status=f"Pattern not found: {search.pattern}"), NO_COMMANDS
    model = _jump_to(replace(model, search=search), current)
    return replace(model, status=f"Match {hits.index(current) + 1}/{len(hits)}"), NO_COMMANDS


def _on_open_export(model: Model, message: msg.OpenExport) -> Result:
    if model.viewed_job_id is None:
        return replace(model, status="No job output to export"), NO_COMMANDS
    return replace(model, modal=ExportModal(f"job-{model.viewed_job_id}.log")), NO_COMMANDS


def _on_export_input(model: Model, message: msg.ExportInput) -> Result:
    if not isinstance(model.modal, ExportModal):
        return model, NO_COMMANDS
    return replace(model, modal=ExportModal(model.modal.buffer + message.character)), NO_COMMANDS


def _on_export_backspace(model: Model, message: msg.ExportBackspace) -> Result:
    if not isinstance(model.modal, ExportModal):
        return model, NO_COMMANDS
    return replace(model, modal=ExportModal(model.modal.buffer[:-1])), NO_COMMANDS


def _on_export_submit(model: Model, message: msg.ExportSubmit) -> Result:
    if not isinstance(model.modal, ExportModal):
        return model, NO_COMMANDS
    target = model.modal.buffer.strip()
    if not target:
        return replace(model, status="Export path is empty"), NO_COMMANDS
    command = ExportLog(Path(target), _viewed_lines(model))
    return replace(model, modal=None, status=f"Exporting to {target}..."), (command,)


_HANDLERS: dict[type, Callable[[Model, msg.Message], Result]] = {
    msg.UserInput: _on_user_input,
    msg.Tick: _on_tick,
    msg.WindowResized: _on_window_resized,
    msg.Interrupt: _on_interrupt,
    msg.Quit: _on_quit,
    msg.StartScan: _on_start_scan,
    msg.DiscoveryComplete: _on_discovery_complete,
    msg.EnqueueJobs: _on_enqueue_jobs,
    msg.JobOutputLine: _on_job_output_line,
    msg.JobCompleted: _on_job_completed,
    msg.LogExported: _on_log_exported,
    msg.MoveCursor: _on_move_cursor,
    msg.MovePage: _on_move_page,
    msg.ToggleCheck: _on_toggle_check,
    msg.ToggleCheckAll: _on_toggle_check_all,
    msg.ExpandOrEnter: _on_expand_or_enter,
    msg.CollapseOrBack: _on_collapse_or_back,
    msg.OpenViewPicker: _on_open_view_picker,
    msg.ViewPickerMove: _on_view_picker_move,
    msg.ViewPickerAccept: _on_view_picker_accept,
    msg.SetViewMode: _on_set_view_mode,
    msg.CloseModal: _on_close_modal,
    msg.RebuildSelected: _on_rebuild_selected,
    msg.ShowOutput: _on_show_output,
    msg.ShowList: _on_show_list,
    msg.ScrollOutput: _on_scroll_output,
    msg.OpenWorkQueue: _on_open_work_queue,
    msg.WorkQueueMove: _on_work_queue_move,
    msg.WorkQueueAccept: _on_work_queue_accept,
    msg.SearchStart: _on_search_start,
    msg.SearchInput: _on_search_input,
    msg.SearchBackspace: _on_search_backspace,
    msg.SearchSubmit: _on_search_submit,
    msg.SearchCancel: _on_search_cancel,
    msg.SearchStep: _on_search_step,
    msg.OpenExport: _on_open_export,
    msg.ExportInput: _on_export_input,
    msg.ExportBackspace: _on_export_backspace,
    msg.ExportSubmit: _on_export_submit,
}


def update(model: Model, message: msg.Message) -> Result:
    handler = _HANDLERS.get(type(message))
    if handler is None:
        raise TypeError(f"Unsupported message type: {type(message).__name__}")
    return handler(model, message)
