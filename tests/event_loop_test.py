"""Test the headless event loop end to end."""

from __future__ import annotations

import os
import queue
import signal
import threading

from podman_compose_mgr.discovery.ports import StaticDiscovery
from podman_compose_mgr.domain.models import JobState, ScanResult
from podman_compose_mgr.loop.event_loop import EventLoop
from podman_compose_mgr.loop.sources import InterruptSource, TimerSource
from podman_compose_mgr.mvu import messages as msg
from podman_compose_mgr.mvu.model import Phase
from podman_compose_mgr.runtime.scripted import Script, ScriptedRuntime
from podman_compose_mgr.tui.frame import FrameRecorder

from .support.builders import make_item, make_settings


def test_one_shot_runs_every_image_then_quits() -> None:
    result = ScanResult(images=(make_item("a"), make_item("b", folder="b"), make_item("a", "a2", folder="c")))
    runtime = ScriptedRuntime({"b": Script(lines=("pulled b",))}, echo_commands=True)
    recorder = FrameRecorder()
    seen: list[msg.Message] = []
    loop = EventLoop(
        make_settings(auto_queue_all=True, one_shot=True, tick_interval=0.05, job_slots=2),
        StaticDiscovery(result),
        runtime,
        recorder,
        tap=seen.append,
        shutdown_timeout=5,
    )

    final = loop.run()

    assert final.should_quit
    assert final.phase is Phase.READY
    assert sorted(record.spec.image for record in final.history) == ["a", "b"]
    assert all(record.status.state is JobState.SUCCEEDED for record in final.history)
    assert sorted(runtime.calls) == [["podman", "pull", "a"], ["podman", "pull", "b"]]
    assert msg.JobOutputLine(2, "pulled b") in seen
    assert recorder.frames


def test_one_shot_quits_when_nothing_found() -> None:
    loop = EventLoop(
        make_settings(auto_queue_all=True, one_shot=True),
        StaticDiscovery(ScanResult()),
        ScriptedRuntime(),
        shutdown_timeout=5,
    )
    final = loop.run()
    assert final.should_quit
    assert final.history == ()
    assert final.status.startswith("Found 0 image reference(s)")


def test_one_shot_quits_when_discovery_fails() -> None:
    loop = EventLoop(
        make_settings(one_shot=True),
        StaticDiscovery(error="root does not exist"),
        ScriptedRuntime(),
        shutdown_timeout=5,
    )
    final = loop.run()
    assert final.should_quit
    assert final.status == "Scan failed: root does not exist"


def test_stop_cancels_running_job() -> None:
    gate = threading.Event()
    started = threading.Event()
    result = ScanResult(images=(make_item("slow"), make_item("later", folder="later")))
    runtime = ScriptedRuntime({"slow": Script(lines=("working",), gate=gate)})

    def tap(message: msg.Message) -> None:
        if isinstance(message, msg.JobOutputLine):
            started.set()

    loop = EventLoop(
        make_settings(auto_queue_all=True),
        StaticDiscovery(result),
        runtime,
        tap=tap,
        shutdown_timeout=5,
    )
    finals = []
    thread = threading.Thread(target=lambda: finals.append(loop.run()))
    thread.start()
    assert started.wait(5)
    loop.stop()
    thread.join(10)

    assert not thread.is_alive()
    final = finals[0]
    assert [(record.spec.image, record.status.state) for record in final.history] == [
        ("slow", JobState.CANCELLED)
    ]
    assert final.queue.is_idle
    assert runtime.calls == [["podman", "pull", "slow"]]


def test_timer_posts_ticks() -> None:
    ticks = threading.Event()
    timer = TimerSource(0.01, lambda message: ticks.set())
    timer.start()
    try:
        assert ticks.wait(5)
    finally:
        timer.stop()


def test_interrupt_source_only_installs_on_main_thread() -> None:
    outcome: list[bool] = []
    source = InterruptSource(lambda message: None)
    thread = threading.Thread(target=lambda: outcome.append(source.install()))
    thread.start()
    thread.join()
    assert outcome == [False]


def test_signal_reaches_loop_blocked_on_inbox() -> None:
    gate = threading.Event()
    started = threading.Event()
    runtime = ScriptedRuntime({"slow": Script(lines=("working",), gate=gate)})

    def tap(message: msg.Message) -> None:
        if isinstance(message, msg.JobOutputLine):
            started.set()

    loop = EventLoop(
        make_settings(auto_queue_all=True, one_shot=True),
        StaticDiscovery(ScanResult(images=(make_item("slow"),))),
        runtime,
        tap=tap,
        shutdown_timeout=5,
    )
    assert isinstance(loop.inbox, queue.SimpleQueue)

    def send_sigterm() -> None:
        if started.wait(5):
            os.kill(os.getpid(), signal.SIGTERM)
        else:
            loop.stop()

    source = InterruptSource(loop.post)
    assert source.install()
    sender = threading.Thread(target=send_sigterm, daemon=True)
    sender.start()
    try:
        final = loop.run()
    finally:
        source.restore()
        sender.join(5)

    assert final.should_quit
    assert [(record.spec.image, record.status.state) for record in final.history] == [
        ("slow", JobState.CANCELLED)
    ]
