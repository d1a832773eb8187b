"""Line-oriented walk over discovered images with a p/N/d/b/s/? prompt."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from podman_compose_mgr.domain.models import DiscoveredImage, JobAction, JobState, JobStatus, RebuildJobSpec
from podman_compose_mgr.jobs.worker import Worker
from podman_compose_mgr.mvu.messages import JobCompleted, JobOutputLine, Message
from podman_compose_mgr.mvu.model import Settings
from podman_compose_mgr.runtime.base import ContainerRuntime


CHOICES = ("p", "N", "d", "b", "s", "?")

HELP_TEXT = (
    "p = Pull image from upstream.",
    "N = Do nothing, go to the next image.",
    "d = Display info (container, compose file, build file).",
    "b = Build image from the Dockerfile next to the compose file.",
    "s = Skip all subsequent images with this same name.",
    "? = Display this help.",
)


@dataclass(slots=True)
class WalkOutcome:
    statuses: list[tuple[str, JobStatus]] = field(default_factory=list)
    interrupted: bool = False


class RebuildWalk:
    """Prompt for each discovered item and run the chosen job synchronously.

    Items already handled for the same (image, container), or whose image was
    skipped with `s`, are not offered again.
    """

    def __init__(
        self,
        items: Sequence[DiscoveredImage],
        runtime: ContainerRuntime,
        settings: Settings,
        *,
        read: Callable[[str], str] = input,
        write: Callable[[str], None] = print,
    ) -> None:
        self.items = list(items)
        self.runtime = runtime
        self.settings = settings
        self.read = read
        self.write = write
        self._processed: set[tuple[str, str | None]] = set()
        self._skip_all: set[str] = set()
        self._next_id = 1

    def _should_skip(self, item: DiscoveredImage) -> bool:
        return item.image in self._skip_all or (item.image, item.container) in self._processed

    def _question(self, item: DiscoveredImage) -> str:
        try:
            where = item.source_dir.relative_to(self.settings.root)
        except ValueError:
            where = item.source_dir
        return f"Refresh {item.image} from {item.container or '-'} in {where}? {'/'.join(CHOICES)}: "

    def _details(self, item: DiscoveredImage) -> None:
        self.write(f"Image: {item.image}")
        self.write(f"Container name: {item.container or '-'}")
        self.write(f"Entry file: {item.entry_path}")
        self.write(f"Build file next to entry: {'yes' if item.has_build_file else 'no'}")

    def _spec(self, item: DiscoveredImage, action: JobAction) -> RebuildJobSpec:
        return RebuildJobSpec(
            image=item.image,
            action=action,
            context_dir=item.source_dir,
            build_args=self.settings.build_args,
            no_cache=self.settings.no_cache,
            container=item.container,
            entry_path=item.entry_path,
        )

    def _run_job(self, spec: RebuildJobSpec) -> tuple[JobStatus, bool]:
        """Run one job, printing its output; Ctrl-C cancels it."""

        completed: list[JobStatus] = []

        def post(message: Message) -> None:
            if isinstance(message, JobOutputLine):
                self.write(message.line)
            elif isinstance(message, JobCompleted):
                completed.append(message.status)

        worker = Worker(self._next_id, spec, self.runtime, post)
        self._next_id += 1
        interrupted = False
        worker.start()
        try:
            while worker.is_alive():
                worker.join(0.1)
        except KeyboardInterrupt:
            interrupted = True
            worker.cancel()
            self._wait_cancelled(worker)
        status = completed[0] if completed else JobStatus.cancelled()
        self.write(f"{spec.action.value} {spec.image}: {status.label()}")
        return status, interrupted

    def _wait_cancelled(self, worker: Worker) -> None:
        """Wait for a cancelled job; another Ctrl-C only repeats the cancel."""

        while worker.is_alive():
            try:
                worker.join(0.1)
            except KeyboardInterrupt:
                worker.cancel()

    def run(self) -> WalkOutcome:
        outcome = WalkOutcome()
        for item in self.items:
            if self._should_skip(item):
                continue
            while True:
                try:
                    answer = self.read(self._question(item)).strip()
                except (EOFError, KeyboardInterrupt):
                    self.write("")
                    outcome.interrupted = True
                    return outcome
                choice = answer or "N"
                if choice == "n":
                    choice = "N"

                if choice in ("p", "b"):
                    if choice == "b" and not item.has_build_file:
                        self.write(f"No Dockerfile or Containerfile in {item.source_dir}")
                        continue
                    action = JobAction.PULL if choice == "p" else JobAction.BUILD
                    status, interrupted = self._run_job(self._spec(item, action))
                    outcome.statuses.append((item.image, status))
                    if interrupted or status.state is JobState.CANCELLED:
                        outcome.interrupted = True
                        return outcome
                    self._processed.add((item.image, item.container))
                    break
                if choice == "N":
                    self._processed.add((item.image, item.container))
                    break
                if choice == "s":
                    self._skip_all.add(item.image)
                    break
                if choice == "d":
                    self._details(item)
                    continue
                if choice == "?":
                    for line in HELP_TEXT:
                        self.write(line)
                    continue
                self.write(f"Invalid input. Please enter {'/'.join(CHOICES)}")
        return outcome
