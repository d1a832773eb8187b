"""Event sources that feed the loop inbox from their own threads or handlers."""

from __future__ import annotations

from collections.abc import Callable
import signal
import threading
from types import FrameType
from typing import Any

from podman_compose_mgr.mvu.messages import Interrupt, Message, Tick


Post = Callable[[Message], None]


class TimerSource:
    """Posts `Tick` every `interval` seconds until stopped."""

    def __init__(self, interval: float, post: Post) -> None:
        self.interval = interval
        self.post = post
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name="pcm-timer", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.post(Tick())

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()


class InterruptSource:
    """Turns SIGINT and SIGTERM into `Interrupt` messages.

    Handlers can only be installed from the main thread; elsewhere `install`
    is a no-op and returns False.
    """

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self, post: Post) -> None:
        self.post = post
        self._previous: dict[int, Any] = {}

    def _handle_signal(self, _signum: int, _frame: FrameType | None) -> None:
        self.post(Interrupt())

    def install(self) -> bool:
        if threading.current_thread() is not threading.main_thread():
            return False
        for signum in self.SIGNALS:
            self._previous[signum] = signal.signal(signum, self._handle_signal)
        return True

    def restore(self) -> None:
        for signum, previous in self._previous.items():
            signal.signal(signum, previous)
        self._previous.clear()
