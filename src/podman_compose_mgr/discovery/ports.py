"""Discovery capability interface and its in-memory implementation."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from podman_compose_mgr.domain.errors import DiscoveryError
from podman_compose_mgr.domain.models import ScanResult


class Discovery(Protocol):
    def scan(
        self,
        root: Path,
        include_patterns: Sequence[str] = (),
        exclude_patterns: Sequence[str] = (),
    ) -> ScanResult: ...


class StaticDiscovery:
    """Returns a fixed result (or raises a fixed error) and records each call."""

    def __init__(self, result: ScanResult | None = None, error: str | None = None) -> None:
        self.result = result or ScanResult()
        self.error = error
        self.calls: list[tuple[Path, tuple[str, ...], tuple[str, ...]]] = []

    def scan(
        self,
        root: Path,
        include_patterns: Sequence[str] = (),
        exclude_patterns: Sequence[str] = (),
    ) -> ScanResult:
        self.calls.append((root, tuple(include_patterns), tuple(exclude_patterns)))
        if self.error is not None:
            raise DiscoveryError(self.error)
        return self.result
