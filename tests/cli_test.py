"""Test the command-line entrypoints without a terminal UI."""

from __future__ import annotations

from pathlib import Path

import pytest

from podman_compose_mgr.cli.app import main
from podman_compose_mgr.cli.common import any_failed, summarize
from podman_compose_mgr.cli.prompt import RebuildWalk
from podman_compose_mgr.domain.errors import JobErrorKind
from podman_compose_mgr.domain.models import JobAction, JobState, JobStatus
from podman_compose_mgr.mvu.messages import JobCompleted
from podman_compose_mgr.mvu.queue import JobRecord
from podman_compose_mgr.runtime.scripted import Script, ScriptedRuntime

from .support.builders import make_item, make_settings, make_spec


def _reader(*values: str):
    answers = iter(values)
    return lambda prompt: next(answers)


def test_simulate_container_view(compose_tree: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["simulate", "--root", str(compose_tree), "--view", "container"])
    lines = capsys.readouterr().out.splitlines()
    assert "web-app  foo/bar:latest" in lines
    assert "cache  redis:7" in lines
    assert lines[-1] == "By container: 4 image reference(s), 0 skipped file(s)"


def test_simulate_folder_view_is_recursive(compose_tree: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["simulate", "--root", str(compose_tree), "--view", "folder"])
    lines = capsys.readouterr().out.splitlines()
    assert "web/" in lines
    assert "  web-app  foo/bar:latest" in lines


def test_rebuild_all_dry_run(compose_tree: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["rebuild", "--root", str(compose_tree), "--all", "--dry-run"])
    out = capsys.readouterr().out
    assert "[dry-run] podman pull redis:7" in out
    assert "podman build -t foo/bar:latest" in out
    assert out.count(": succeeded") >= 4


def test_walk_pulls_skips_and_builds() -> None:
    items = [
        make_item("a", "a1"),
        make_item("a", "a2", folder="other"),
        make_item("b", has_build_file=True),
        make_item("c"),
    ]
    runtime = ScriptedRuntime({"a": Script(lines=("pulling a",))})
    written: list[str] = []

    outcome = RebuildWalk(
        items,
        runtime,
        make_settings(),
        read=_reader("p", "s", "d", "b", ""),
        write=written.append,
    ).run()

    assert not outcome.interrupted
    assert [(image, status.state) for image, status in outcome.statuses] == [
        ("a", JobState.SUCCEEDED),
        ("b", JobState.SUCCEEDED),
    ]
    assert runtime.calls[0] == ["podman", "pull", "a"]
    assert runtime.calls[1][:4] == ["podman", "build", "-t", "b"]
    assert "pulling a" in written
    assert "Build file next to entry: yes" in written


def test_walk_refuses_build_without_build_file() -> None:
    written: list[str] = []
    outcome = RebuildWalk(
        [make_item("a")],
        ScriptedRuntime(),
        make_settings(),
        read=_reader("b", "?", "x", "N"),
        write=written.append,
    ).run()

    assert outcome.statuses == []
    assert any(line.startswith("No Dockerfile or Containerfile") for line in written)
    assert "s = Skip all subsequent images with this same name." in written
    assert any(line.startswith("Invalid input.") for line in written)


def test_walk_stops_on_end_of_input() -> None:
    def read(prompt: str) -> str:
        raise EOFError

    outcome = RebuildWalk([make_item("a")], ScriptedRuntime(), make_settings(), read=read, write=lambda line: None).run()
    assert outcome.interrupted


def test_summary_helpers() -> None:
    failed = JobStatus.failed(JobErrorKind.NON_ZERO_EXIT, "exit code 1")
    records = [
        JobRecord(1, make_spec("a"), (), JobStatus.succeeded()),
        JobRecord(2, make_spec("b", action=JobAction.BUILD), ("boom",), failed),
    ]
    assert summarize(records) == ["#1 pull a: succeeded", "#2 build b: failed: exit code 1"]
    assert any_failed([record.status for record in records])
    assert not any_failed([JobStatus.succeeded(), JobStatus.cancelled()])


class _InterruptedWorker:
    """Worker whose first two joins are interrupted by Ctrl-C."""

    instances: list["_InterruptedWorker"] = []

    def __init__(self, job_id, spec, runtime, post) -> None:
        self.job_id = job_id
        self.post = post
        self.cancels = 0
        self.joins = 0
        self.alive = False
        self.instances.append(self)

    def start(self) -> None:
        self.alive = True

    def is_alive(self) -> bool:
        return self.alive

    def join(self, timeout: float | None = None) -> None:
        self.joins += 1
        if self.joins <= 2:
            raise KeyboardInterrupt
        self.alive = False
        self.post(JobCompleted(self.job_id, JobStatus.cancelled()))

    def cancel(self) -> None:
        self.cancels += 1


def test_walk_repeated_ctrl_c_while_cancelling(monkeypatch: pytest.MonkeyPatch) -> None:
    _InterruptedWorker.instances.clear()
    monkeypatch.setattr("podman_compose_mgr.cli.prompt.Worker", _InterruptedWorker)
    written: list[str] = []

    outcome = RebuildWalk(
        [make_item("a"), make_item("b", folder="b")],
        ScriptedRuntime(),
        make_settings(),
        read=_reader("p", "p"),
        write=written.append,
    ).run()

    [worker] = _InterruptedWorker.instances
    assert worker.cancels == 2
    assert not worker.is_alive()
    assert outcome.interrupted
    assert [(image, status.state) for image, status in outcome.statuses] == [("a", JobState.CANCELLED)]
    assert "pull a: cancelled" in written
