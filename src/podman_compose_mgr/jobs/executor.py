"""Carry out Commands on background threads and report back through `post`."""

from __future__ import annotations

from collections.abc import Callable
import threading

from podman_compose_mgr.discovery.ports import Discovery
from podman_compose_mgr.domain.errors import DiscoveryError
from podman_compose_mgr.domain.models import ScanResult
from podman_compose_mgr.jobs.worker import Worker
from podman_compose_mgr.mvu.commands import CancelJob, Command, ExportLog, StartDiscovery, StartJob
from podman_compose_mgr.mvu.messages import DiscoveryComplete, LogExported, Message
from podman_compose_mgr.observability.logging import get_logger, log_event
from podman_compose_mgr.runtime.base import ContainerRuntime
from podman_compose_mgr.storage.atomic import atomic_write_lines


_LOGGER = get_logger("podman_compose_mgr.jobs.executor")


class CommandExecutor:
    """Owns the workers and background threads started on behalf of `update`."""

    def __init__(
        self,
        discovery: Discovery,
        runtime: ContainerRuntime,
        post: Callable[[Message], None],
    ) -> None:
        self.discovery = discovery
        self.runtime = runtime
        self.post = post
        self._workers: dict[int, Worker] = {}
        self._threads: list[threading.Thread] = []

    def dispatch(self, command: Command) -> None:
        self._prune()
        if isinstance(command, StartDiscovery):
            self._start_discovery(command)
        elif isinstance(command, StartJob):
            self._start_job(command)
        elif isinstance(command, CancelJob):
            self._cancel_job(command)
        elif isinstance(command, ExportLog):
            self._export_log(command)
        else:
            raise TypeError(f"Unsupported command type: {type(command).__name__}")

    def _prune(self) -> None:
        self._workers = {job_id: worker for job_id, worker in self._workers.items() if worker.is_alive()}
        self._threads = [thread for thread in self._threads if thread.is_alive()]

    def _scan(self, command: StartDiscovery) -> None:
        log_event(_LOGGER, "discovery_started", root=str(command.root))
        try:
            result = self.discovery.scan(command.root, command.include_patterns, command.exclude_patterns)
        except DiscoveryError as exc:
            log_event(_LOGGER, "discovery_failed", root=str(command.root), error=str(exc))
            self.post(DiscoveryComplete(ScanResult(), error=str(exc)))
            return
        except Exception as exc:
            _LOGGER.exception("Discovery crashed under %s", command.root)
            self.post(DiscoveryComplete(ScanResult(), error=str(exc) or type(exc).__name__))
            return
        self.post(DiscoveryComplete(result))

    def _start_discovery(self, command: StartDiscovery) -> None:
        thread = threading.Thread(target=self._scan, args=(command,), name="pcm-discovery", daemon=True)
        self._threads.append(thread)
        thread.start()

    def _start_job(self, command: StartJob) -> None:
        worker = Worker(command.job_id, command.spec, self.runtime, self.post)
        self._workers[command.job_id] = worker
        worker.start()

    def _cancel_job(self, command: CancelJob) -> None:
        worker = self._workers.get(command.job_id)
        if worker is None:
            return
        log_event(_LOGGER, "job_cancel_requested", job_id=command.job_id)
        worker.cancel()

    def _export_log(self, command: ExportLog) -> None:
        path = command.path.expanduser()
        try:
            count = atomic_write_lines(path, command.lines)
        except OSError as exc:
            log_event(_LOGGER, "export_failed", path=str(path), error=str(exc))
            self.post(LogExported(path, 0, error=str(exc)))
            return
        log_event(_LOGGER, "export_written", path=str(path), lines=count)
        self.post(LogExported(path, count))

    def shutdown(self, timeout: float | None = None) -> None:
        """Cancel every worker and wait for all background threads."""

        workers = list(self._workers.values())
        for worker in workers:
            worker.cancel()
        for worker in workers:
            worker.join(timeout)
        for thread in self._threads:
            thread.join(timeout)
        log_event(_LOGGER, "executor_stopped", workers=len(workers))
