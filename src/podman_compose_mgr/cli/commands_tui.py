"""`podman-compose-mgr tui` command."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from podman_compose_mgr.cli.common import make_runtime, summarize
from podman_compose_mgr.config.loader import load_app_config
from podman_compose_mgr.discovery.scanner import FsDiscovery
from podman_compose_mgr.loop.event_loop import EventLoop
from podman_compose_mgr.loop.sources import InterruptSource
from podman_compose_mgr.mvu.model import Settings
from podman_compose_mgr.observability.logging import configure_logging, verbosity_to_level
from podman_compose_mgr.tui.app import ComposeMgrApp


@dataclass(slots=True)
class TuiCommand:
    """Browse discovered images and rebuild them interactively."""

    root: Path = Path(".")
    config: str | None = None
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    build_arg: tuple[str, ...] = ()
    no_cache: bool = False
    dry_run: bool = False
    auto_queue_all: bool = False
    job_slots: int | None = None
    log_file: Path | None = None
    verbose: int = 0


def execute(command: TuiCommand) -> None:
    cfg = load_app_config(
        config_ref=command.config,
        root=command.root,
        include_patterns=list(command.include),
        exclude_patterns=list(command.exclude),
        build_args=list(command.build_arg),
        no_cache=command.no_cache or None,
        dry_run=command.dry_run or None,
    )
    if command.auto_queue_all:
        cfg.tui.auto_queue_all = True
    if command.job_slots is not None:
        cfg.tui.job_slots = command.job_slots
    # The terminal belongs to Textual, so logs go to a file or nowhere.
    configure_logging(verbosity_to_level(command.verbose), command.log_file, quiet=True)

    session = EventLoop(Settings.from_config(cfg), FsDiscovery(), make_runtime(cfg))
    interrupts = InterruptSource(session.post)
    interrupts.install()
    app = ComposeMgrApp(session)
    try:
        app.run()
    finally:
        interrupts.restore()
        final = app.wait_for_session()

    if final is not None and final.history:
        for line in summarize(final.history):
            print(line)
