"""The single-consumer event loop that owns the Model."""

from __future__ import annotations

from collections.abc import Callable
import queue
from typing import Protocol

from podman_compose_mgr.discovery.ports import Discovery
from podman_compose_mgr.jobs.executor import CommandExecutor
from podman_compose_mgr.loop.sources import TimerSource
from podman_compose_mgr.mvu.commands import Command
from podman_compose_mgr.mvu.messages import Message, Quit
from podman_compose_mgr.mvu.model import Model, Settings, init
from podman_compose_mgr.mvu.render import Frame, render
from podman_compose_mgr.mvu.update import update
from podman_compose_mgr.observability.logging import get_logger, log_event
from podman_compose_mgr.runtime.base import ContainerRuntime


_LOGGER = get_logger("podman_compose_mgr.loop")

DEFAULT_SHUTDOWN_TIMEOUT = 30.0


class RenderTarget(Protocol):
    def draw(self, frame: Frame) -> None: ...


class EventLoop:
    """Merge every event source into one inbox and run update/dispatch/render.

    Messages are processed strictly one at a time. `run` returns the final
    Model once the quit flag is set and all workers have been joined.
    """

    def __init__(
        self,
        settings: Settings,
        discovery: Discovery,
        runtime: ContainerRuntime,
        target: RenderTarget | None = None,
        *,
        tap: Callable[[Message], None] | None = None,
        shutdown_timeout: float | None = DEFAULT_SHUTDOWN_TIMEOUT,
    ) -> None:
        self.settings = settings
        self.target = target
        self.tap = tap
        self.shutdown_timeout = shutdown_timeout
        # SimpleQueue.put is reentrant, so signal handlers may post while the
        # loop thread is blocked in get on the same thread.
        self.inbox: queue.SimpleQueue[Message] = queue.SimpleQueue()
        self.executor = CommandExecutor(discovery, runtime, self.post)
        self.timer = TimerSource(settings.tick_interval, self.post)

    def post(self, message: Message) -> None:
        """Thread-safe entry point for every source."""

        self.inbox.put(message)

    def stop(self) -> None:
        self.post(Quit())

    def _dispatch(self, commands: tuple[Command, ...]) -> None:
        for command in commands:
            self.executor.dispatch(command)

    def _draw(self, model: Model) -> None:
        if self.target is not None:
            self.target.draw(render(model))

    def _step(self, model: Model, message: Message) -> Model:
        if self.tap is not None:
            self.tap(message)
        next_model, commands = update(model, message)
        self._dispatch(commands)
        if next_model is not model:
            self._draw(next_model)
        return next_model

    def _drain(self, model: Model) -> Model:
        """Apply messages left in the inbox; their commands are not run."""

        while True:
            try:
                message = self.inbox.get_nowait()
            except queue.Empty:
                return model
            if self.tap is not None:
                self.tap(message)
            model, commands = update(model, message)
            if commands:
                log_event(_LOGGER, "commands_dropped_on_shutdown", count=len(commands))

    def run(self) -> Model:
        model, commands = init(self.settings)
        log_event(_LOGGER, "loop_started", root=str(self.settings.root))
        self._dispatch(commands)
        self._draw(model)
        self.timer.start()
        try:
            while not model.should_quit:
                model = self._step(model, self.inbox.get())
        finally:
            self.timer.stop()
            self.executor.shutdown(self.shutdown_timeout)
        model = self._drain(model)
        self._draw(model)
        log_event(_LOGGER, "loop_stopped", jobs_finished=len(model.history))
        return model
