"""Run podman (or a compatible CLI) as a subprocess."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
import os
from pathlib import Path
import shutil
import signal
import subprocess
import threading

from podman_compose_mgr.domain.errors import RuntimeSpawnError
from podman_compose_mgr.observability.logging import get_logger, log_event
from podman_compose_mgr.runtime.base import build_argv, pull_argv


_LOGGER = get_logger("podman_compose_mgr.runtime")

TERMINATE_GRACE_SECONDS = 5.0


def resolve_runtime_binary(configured: str = "podman") -> str:
    """Prefer `PODMAN_BIN`, then the configured name resolved on PATH."""

    override = os.environ.get("PODMAN_BIN")
    if override:
        return override
    return shutil.which(configured) or configured


class PodmanProcess:
    """One runtime subprocess with stdout and stderr merged.

    The child leads its own process group. `terminate` sends SIGTERM to the
    group and arms a timer that sends SIGKILL after `grace` seconds, so a
    child that ignores SIGTERM or leaves descendants holding the pipe still
    reaches EOF.
    """

    def __init__(self, argv: list[str], *, grace: float = TERMINATE_GRACE_SECONDS) -> None:
        self.argv = argv
        self.grace = grace
        self._terminating = threading.Event()
        self._kill_timer: threading.Timer | None = None
        self._lock = threading.Lock()
        try:
            self._proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                bufsize=1,
                start_new_session=True,
            )
        except OSError as exc:
            raise RuntimeSpawnError(f"Could not start {argv[0]}: {exc}") from exc
        log_event(_LOGGER, "runtime_started", argv=argv, pid=self._proc.pid)

    def lines(self) -> Iterator[str]:
        stdout = self._proc.stdout
        if stdout is None:
            return
        for raw in stdout:
            yield raw.rstrip("\r\n")

    def wait(self) -> int:
        code = self._proc.wait()
        with self._lock:
            if self._kill_timer is not None:
                self._kill_timer.cancel()
        if self._proc.stdout is not None:
            self._proc.stdout.close()
        log_event(_LOGGER, "runtime_exited", pid=self._proc.pid, returncode=code)
        return code

    def terminate(self) -> None:
        with self._lock:
            if self._terminating.is_set() or self._proc.returncode is not None:
                return
            self._terminating.set()
            self._signal_group(signal.SIGTERM)
            self._kill_timer = threading.Timer(self.grace, self._kill_group)
            self._kill_timer.daemon = True
            self._kill_timer.start()

    def _kill_group(self) -> None:
        log_event(_LOGGER, "runtime_killed", pid=self._proc.pid, grace=self.grace)
        self._signal_group(signal.SIGKILL)

    def _signal_group(self, signum: signal.Signals) -> None:
        # The group id equals the leader pid because of start_new_session.
        try:
            os.killpg(self._proc.pid, signum)
        except ProcessLookupError:
            log_event(_LOGGER, "runtime_group_gone", pid=self._proc.pid, signal=signum.name)


class PodmanRuntime:
    """Container runtime backed by the podman CLI."""

    def __init__(self, binary: str = "podman", *, grace: float = TERMINATE_GRACE_SECONDS) -> None:
        self.binary = resolve_runtime_binary(binary)
        self.grace = grace

    def build(
        self,
        image: str,
        context_dir: Path,
        dockerfile: Path | None,
        build_args: Sequence[str],
        no_cache: bool,
    ) -> PodmanProcess:
        return PodmanProcess(
            build_argv(self.binary, image, context_dir, dockerfile, build_args, no_cache),
            grace=self.grace,
        )

    def pull(self, image: str) -> PodmanProcess:
        return PodmanProcess(pull_argv(self.binary, image), grace=self.grace)
