"""`podman-compose-mgr rebuild` command."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import sys

from podman_compose_mgr.cli.common import any_failed, make_runtime, summarize
from podman_compose_mgr.cli.prompt import RebuildWalk
from podman_compose_mgr.config.loader import load_app_config
from podman_compose_mgr.config.schema import AppConfig
from podman_compose_mgr.discovery.scanner import FsDiscovery
from podman_compose_mgr.domain.errors import DiscoveryError
from podman_compose_mgr.loop.event_loop import EventLoop
from podman_compose_mgr.loop.sources import InterruptSource
from podman_compose_mgr.mvu.messages import JobCompleted, JobOutputLine, Message
from podman_compose_mgr.mvu.model import Settings
from podman_compose_mgr.observability.logging import configure_logging, verbosity_to_level
from podman_compose_mgr.runtime.base import ContainerRuntime


@dataclass(slots=True)
class RebuildCommand:
    """Walk discovered images and pull or build them, one prompt per image.

    With `--all`, every image is queued without prompting and the jobs run
    headlessly until the queue is empty.
    """

    root: Path = Path(".")
    config: str | None = None
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    build_arg: tuple[str, ...] = ()
    no_cache: bool = False
    dry_run: bool = False
    all: bool = False
    log_file: Path | None = None
    verbose: int = 0


def _print_message(message: Message) -> None:
    if isinstance(message, JobOutputLine):
        print(message.line, flush=True)
    elif isinstance(message, JobCompleted):
        print(f"job #{message.job_id}: {message.status.label()}", flush=True)


def _run_all(cfg: AppConfig, runtime: ContainerRuntime) -> int:
    cfg.tui.auto_queue_all = True
    cfg.tui.one_shot = True
    session = EventLoop(Settings.from_config(cfg), FsDiscovery(), runtime, tap=_print_message)
    interrupts = InterruptSource(session.post)
    interrupts.install()
    try:
        final = session.run()
    finally:
        interrupts.restore()

    if final.status:
        print(final.status)
    for line in summarize(final.history):
        print(line)
    return 1 if any_failed([record.status for record in final.history]) else 0


def _run_prompt(cfg: AppConfig, runtime: ContainerRuntime) -> int:
    settings = Settings.from_config(cfg)
    try:
        result = FsDiscovery().scan(settings.root, settings.include_patterns, settings.exclude_patterns)
    except DiscoveryError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    for issue in result.issues:
        print(f"skipped {issue.path}: {issue.kind.value}: {issue.detail}", file=sys.stderr)

    outcome = RebuildWalk(result.images, runtime, settings).run()
    if outcome.interrupted:
        print("Operation cancelled by user")
    return 1 if any_failed([status for _, status in outcome.statuses]) else 0


def execute(command: RebuildCommand) -> None:
    cfg = load_app_config(
        config_ref=command.config,
        root=command.root,
        include_patterns=list(command.include),
        exclude_patterns=list(command.exclude),
        build_args=list(command.build_arg),
        no_cache=command.no_cache or None,
        dry_run=command.dry_run or None,
    )
    configure_logging(verbosity_to_level(command.verbose), command.log_file)
    runtime = make_runtime(cfg)
    code = _run_all(cfg, runtime) if command.all else _run_prompt(cfg, runtime)
    if code:
        raise SystemExit(code)
