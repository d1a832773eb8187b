"""In-memory container runtime used for dry runs and tests."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
import threading

from podman_compose_mgr.domain.errors import RuntimeSpawnError
from podman_compose_mgr.runtime.base import build_argv, pull_argv


TERMINATED_EXIT_CODE = -15


@dataclass(frozen=True, slots=True)
class Script:
    """Canned behaviour for one image.

    With a `gate`, the process keeps running after its last line until the
    gate is set or the process is terminated.
    """

    lines: tuple[str, ...] = ()
    exit_code: int = 0
    spawn_error: str | None = None
    gate: threading.Event | None = None


class ScriptedProcess:
    def __init__(self, script: Script) -> None:
        self._script = script
        self._terminated = threading.Event()

    def lines(self) -> Iterator[str]:
        for line in self._script.lines:
            if self._terminated.is_set():
                return
            yield line
        gate = self._script.gate
        if gate is None:
            return
        while not gate.is_set() and not self._terminated.is_set():
            gate.wait(0.01)

    def wait(self) -> int:
        if self._terminated.is_set():
            return TERMINATED_EXIT_CODE
        return self._script.exit_code

    def terminate(self) -> None:
        self._terminated.set()


class ScriptedRuntime:
    """Replays scripts keyed by image; unknown images succeed.

    With `echo_commands` an unscripted job prints the command it would have
    run, which is how `--dry-run` works.
    """

    def __init__(
        self,
        scripts: Mapping[str, Script] | None = None,
        *,
        echo_commands: bool = False,
        binary: str = "podman",
    ) -> None:
        self.scripts = dict(scripts or {})
        self.echo_commands = echo_commands
        self.binary = binary
        self.calls: list[list[str]] = []
        self._lock = threading.Lock()

    def _start(self, image: str, argv: list[str]) -> ScriptedProcess:
        with self._lock:
            self.calls.append(argv)
        script = self.scripts.get(image)
        if script is None:
            lines = (f"[dry-run] {' '.join(argv)}",) if self.echo_commands else ()
            script = Script(lines=lines)
        if script.spawn_error is not None:
            raise RuntimeSpawnError(script.spawn_error)
        return ScriptedProcess(script)

    def build(
        self,
        image: str,
        context_dir: Path,
        dockerfile: Path | None,
        build_args: Sequence[str],
        no_cache: bool,
    ) -> ScriptedProcess:
        argv = build_argv(self.binary, image, context_dir, dockerfile, build_args, no_cache)
        return self._start(image, argv)

    def pull(self, image: str) -> ScriptedProcess:
        return self._start(image, pull_argv(self.binary, image))
