"""Render targets: conversion of frames to rich text, and a headless recorder."""

from __future__ import annotations

import threading

from rich.text import Text

from podman_compose_mgr.mvu.render import Frame, frame_text


def frame_to_text(frame: Frame) -> Text:
    text = Text(no_wrap=True, overflow="crop")
    for index, line in enumerate(frame):
        if index:
            text.append("\n")
        for segment in line:
            text.append(segment.text, style=segment.style or None)
    return text


class FrameRecorder:
    """Keeps every drawn frame; used for headless runs and tests."""

    def __init__(self) -> None:
        self.frames: list[Frame] = []
        self._lock = threading.Lock()

    def draw(self, frame: Frame) -> None:
        with self._lock:
            self.frames.append(frame)

    @property
    def last(self) -> Frame | None:
        with self._lock:
            return self.frames[-1] if self.frames else None

    def last_text(self) -> list[str]:
        frame = self.last
        return frame_text(frame) if frame is not None else []
