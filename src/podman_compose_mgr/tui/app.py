"""Textual adapter: keyboard and resize events in, rendered frames out."""

from __future__ import annotations

import threading

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Static

from podman_compose_mgr.loop.event_loop import EventLoop
from podman_compose_mgr.mvu.messages import Interrupt, Quit, UserInput, WindowResized
from podman_compose_mgr.mvu.model import Model
from podman_compose_mgr.mvu.render import Frame
from podman_compose_mgr.observability.logging import get_logger
from podman_compose_mgr.tui.frame import frame_to_text


_LOGGER = get_logger("podman_compose_mgr.tui")


class ComposeMgrApp(App[None]):
    """Hosts an EventLoop on a background thread and paints its frames.

    The loop thread never touches widgets: `draw` only stores the newest
    frame, and a Textual interval on the app thread paints it.
    """

    CSS = """
    Screen {
        layout: vertical;
    }

    #frame {
        height: 1fr;
        width: 1fr;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "interrupt", "Interrupt", priority=True, show=False),
        Binding("ctrl+q", "quit_session", "Quit", priority=True, show=False),
        Binding("tab", "forward_key('tab')", "Output", priority=True, show=False),
    ]

    def __init__(self, session: EventLoop, *, refresh_interval: float = 1 / 30) -> None:
        super().__init__()
        self.session = session
        self.session.target = self
        self.refresh_interval = max(0.01, refresh_interval)
        self.final_model: Model | None = None
        self._frame_lock = threading.Lock()
        self._pending_frame: Frame | None = None
        self._session_done = threading.Event()
        self._session_thread: threading.Thread | None = None

    def compose(self) -> ComposeResult:
        yield Static("", id="frame")

    def on_mount(self) -> None:
        self.session.post(WindowResized(self.size.width, self.size.height))
        self.set_interval(self.refresh_interval, self._flush)
        self._session_thread = threading.Thread(target=self._run_session, name="pcm-loop", daemon=True)
        self._session_thread.start()

    def _run_session(self) -> None:
        try:
            self.final_model = self.session.run()
        except Exception:
            _LOGGER.exception("Event loop crashed")
            raise
        finally:
            self._session_done.set()

    def draw(self, frame: Frame) -> None:
        with self._frame_lock:
            self._pending_frame = frame

    def _flush(self) -> None:
        with self._frame_lock:
            frame, self._pending_frame = self._pending_frame, None
        if frame is not None:
            self.query_one("#frame", Static).update(frame_to_text(frame))
        if self._session_done.is_set():
            self.exit()

    def on_key(self, event: events.Key) -> None:
        self.session.post(UserInput(event.key, event.character))
        event.stop()

    def on_resize(self, event: events.Resize) -> None:
        self.session.post(WindowResized(event.size.width, event.size.height))

    def action_interrupt(self) -> None:
        self.session.post(Interrupt())

    def action_quit_session(self) -> None:
        self.session.post(Quit())

    def action_forward_key(self, key: str) -> None:
        self.session.post(UserInput(key, None))

    def on_unmount(self) -> None:
        if not self._session_done.is_set():
            self.session.stop()

    def wait_for_session(self, timeout: float | None = None) -> Model | None:
        """Join the loop thread after `run()` returns and hand back the final Model."""

        if self._session_thread is not None:
            self._session_thread.join(timeout)
        return self.final_model
