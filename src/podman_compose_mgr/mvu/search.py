"""Regex search over job output lines."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import re


@dataclass(frozen=True, slots=True)
class SearchState:
    """The prompt buffer while editing, and the submitted pattern afterwards."""

    query: str = ""
    pattern: str | None = None
    backward: bool = False
    editing: bool = False
    hits: tuple[int, ...] = ()
    current: int | None = None


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile with smart case: all-lowercase patterns ignore case."""

    flags = re.IGNORECASE if pattern == pattern.lower() else 0
    return re.compile(pattern, flags)


def find_hits(regex: re.Pattern[str], lines: Sequence[str]) -> tuple[int, ...]:
    return tuple(index for index, line in enumerate(lines) if regex.search(line))


def next_hit(hits: Sequence[int], origin: int, *, backward: bool) -> int | None:
    """Return the first hit after (or before) `origin`, wrapping around."""

    if not hits:
        return None
    if backward:
        earlier = [hit for hit in hits if hit < origin]
        return earlier[-1] if earlier else hits[-1]
    later = [hit for hit in hits if hit > origin]
    return later[0] if later else hits[0]


def first_hit(hits: Sequence[int], origin: int, *, backward: bool) -> int | None:
    """Like `next_hit`, but a hit on `origin` itself counts."""

    if origin in hits:
        return origin
    return next_hit(hits, origin, backward=backward)


def match_spans(regex: re.Pattern[str], line: str) -> list[tuple[int, int]]:
    return [match.span() for match in regex.finditer(line) if match.end() > match.start()]
