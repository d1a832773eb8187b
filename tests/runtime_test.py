"""Test the subprocess-backed runtime and the write/log helpers it relies on."""

from __future__ import annotations

import json
import logging
from pathlib import Path
import signal
import sys
import threading
import time

import pytest

from podman_compose_mgr.domain.errors import RuntimeSpawnError
from podman_compose_mgr.domain.models import JobAction, JobStatus
from podman_compose_mgr.jobs.worker import Worker
from podman_compose_mgr.mvu.messages import JobCompleted, JobOutputLine
from podman_compose_mgr.observability.logging import _JsonFormatter, log_event, verbosity_to_level
from podman_compose_mgr.runtime.base import build_argv, pull_argv
from podman_compose_mgr.runtime.podman import PodmanProcess, PodmanRuntime, resolve_runtime_binary
from podman_compose_mgr.storage.atomic import atomic_write_lines

from .support.builders import make_spec


def test_argv_builders() -> None:
    assert pull_argv("podman", "redis:7") == ["podman", "pull", "redis:7"]
    assert build_argv("podman", "web", Path("/ctx"), None, (), False) == ["podman", "build", "-t", "web", "/ctx"]


def test_binary_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PODMAN_BIN", "/opt/bin/podman")
    assert resolve_runtime_binary() == "/opt/bin/podman"
    assert PodmanRuntime("docker").binary == "/opt/bin/podman"

    monkeypatch.delenv("PODMAN_BIN")
    assert resolve_runtime_binary("definitely-not-installed-pcm") == "definitely-not-installed-pcm"


def test_process_streams_merged_output() -> None:
    script = "import sys; print('out'); print('err', file=sys.stderr, flush=True); sys.exit(3)"
    process = PodmanProcess([sys.executable, "-c", script])
    assert sorted(process.lines()) == ["err", "out"]
    assert process.wait() == 3


def test_process_terminate() -> None:
    process = PodmanProcess([sys.executable, "-c", "import time; print('up', flush=True); time.sleep(30)"])
    lines = process.lines()
    assert next(lines) == "up"
    process.terminate()
    assert list(lines) == []
    assert process.wait() != 0


def test_missing_binary_is_spawn_error(tmp_path: Path) -> None:
    with pytest.raises(RuntimeSpawnError):
        PodmanProcess([str(tmp_path / "missing-podman"), "pull", "x"])


def test_atomic_write_lines(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "out.log"
    assert atomic_write_lines(target, ["one", "two"]) == 2
    assert target.read_text(encoding="utf-8") == "one\ntwo\n"
    assert atomic_write_lines(target, []) == 0
    assert target.read_text(encoding="utf-8") == ""
    assert [path.name for path in target.parent.iterdir()] == ["out.log"]


def test_structured_log_records() -> None:
    records: list[logging.LogRecord] = []

    class _Capture(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(record)

    logger = logging.getLogger("podman_compose_mgr.test")
    logger.setLevel(logging.INFO)
    handler = _Capture()
    logger.addHandler(handler)
    try:
        log_event(logger, "job_started", job_id=3, image="nginx")
    finally:
        logger.removeHandler(handler)

    payload = json.loads(_JsonFormatter().format(records[0]))
    assert payload["event"] == "job_started"
    assert payload["job_id"] == 3
    assert payload["image"] == "nginx"
    assert payload["level"] == "INFO"


def test_verbosity_levels() -> None:
    assert [verbosity_to_level(count) for count in (0, 1, 2, 5)] == ["WARNING", "INFO", "DEBUG", "DEBUG"]


def test_terminate_kills_group_that_ignores_sigterm(tmp_path: Path) -> None:
    # The background sleep inherits stdout and the ignored SIGTERM.
    script = tmp_path / "stubborn.sh"
    script.write_text("trap '' TERM\nsleep 30 &\necho up\nwait\n", encoding="utf-8")
    process = PodmanProcess(["sh", str(script)], grace=0.2)
    lines = process.lines()
    assert next(lines) == "up"

    started = time.monotonic()
    process.terminate()
    assert list(lines) == []
    assert process.wait() == -signal.SIGKILL
    assert time.monotonic() - started < 5


def test_cancelled_pull_finishes_when_runtime_ignores_sigterm(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    binary = tmp_path / "podman"
    binary.write_text("#!/bin/sh\ntrap '' TERM\necho started\nsleep 30 &\nwait\n", encoding="utf-8")
    binary.chmod(0o755)
    monkeypatch.delenv("PODMAN_BIN", raising=False)
    received: list = []
    first_line = threading.Event()

    def post(message) -> None:
        received.append(message)
        if isinstance(message, JobOutputLine):
            first_line.set()

    worker = Worker(1, make_spec("redis", action=JobAction.PULL), PodmanRuntime(str(binary), grace=0.2), post)
    worker.start()
    assert first_line.wait(5)
    worker.cancel()
    worker.join(5)

    assert not worker.is_alive()
    assert received[-1] == JobCompleted(1, JobStatus.cancelled())
