"""Run one build or pull job and report it back as messages."""

from __future__ import annotations

from collections.abc import Callable
import threading

from podman_compose_mgr.domain.errors import JobErrorKind, RuntimeSpawnError
from podman_compose_mgr.domain.models import JobAction, JobStatus, RebuildJobSpec
from podman_compose_mgr.mvu.messages import JobCompleted, JobOutputLine, Message
from podman_compose_mgr.observability.logging import get_logger, log_event
from podman_compose_mgr.runtime.base import ContainerRuntime, RuntimeProcess


_LOGGER = get_logger("podman_compose_mgr.jobs.worker")

Post = Callable[[Message], None]


class Worker:
    """Executes a single job on its own thread.

    Every output line is posted as `JobOutputLine` in order, followed by
    exactly one `JobCompleted`, whatever happens inside the job.
    """

    def __init__(self, job_id: int, spec: RebuildJobSpec, runtime: ContainerRuntime, post: Post) -> None:
        self.job_id = job_id
        self.spec = spec
        self.runtime = runtime
        self.post = post
        self._cancel = threading.Event()
        self._lock = threading.Lock()
        self._process: RuntimeProcess | None = None
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self.run,
            name=f"pcm-job-{self.job_id}",
            daemon=True,
        )
        self._thread.start()

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def cancel(self) -> None:
        self._cancel.set()
        with self._lock:
            process = self._process
        if process is not None:
            process.terminate()

    def _spawn(self) -> RuntimeProcess:
        spec = self.spec
        if spec.action is JobAction.BUILD:
            return self.runtime.build(
                spec.image,
                spec.context_dir,
                spec.dockerfile,
                spec.build_args,
                spec.no_cache,
            )
        return self.runtime.pull(spec.image)

    def _execute(self) -> JobStatus:
        spec = self.spec
        if self._cancel.is_set():
            return JobStatus.cancelled()
        if spec.action is JobAction.BUILD and spec.dockerfile is not None and not spec.dockerfile.is_file():
            return JobStatus.failed(JobErrorKind.MISSING_BUILD_FILE, f"{spec.dockerfile} not found")
        try:
            process = self._spawn()
        except RuntimeSpawnError as exc:
            return JobStatus.failed(JobErrorKind.SPAWN_FAILED, str(exc))

        with self._lock:
            self._process = process
        if self._cancel.is_set():
            process.terminate()

        for line in process.lines():
            self.post(JobOutputLine(self.job_id, line))
        code = process.wait()
        if self._cancel.is_set():
            return JobStatus.cancelled()
        if code != 0:
            return JobStatus.failed(JobErrorKind.NON_ZERO_EXIT, f"exit code {code}")
        return JobStatus.succeeded()

    def run(self) -> JobStatus:
        """Run the job in the calling thread and return its final status."""

        log_event(_LOGGER, "job_started", job_id=self.job_id, image=self.spec.image, action=self.spec.action.value)
        status = JobStatus.failed(JobErrorKind.WORKER_CRASHED, "worker did not finish")
        try:
            status = self._execute()
        except Exception as exc:
            _LOGGER.exception("Job %s crashed", self.job_id)
            status = JobStatus.failed(JobErrorKind.WORKER_CRASHED, str(exc) or type(exc).__name__)
        finally:
            log_event(_LOGGER, "job_finished", job_id=self.job_id, status=status.state.value, reason=status.reason)
            self.post(JobCompleted(self.job_id, status))
        return status
