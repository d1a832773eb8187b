"""Test output search helpers."""

from __future__ import annotations

from podman_compose_mgr.mvu.search import compile_pattern, find_hits, first_hit, match_spans, next_hit


LINES = ["Step 1/3", "ERROR: missing", "ok", "error again"]


def test_smart_case() -> None:
    assert find_hits(compile_pattern("error"), LINES) == (1, 3)
    assert find_hits(compile_pattern("ERROR"), LINES) == (1,)


def test_next_hit_wraps_both_ways() -> None:
    hits = (1, 3)
    assert next_hit(hits, 1, backward=False) == 3
    assert next_hit(hits, 3, backward=False) == 1
    assert next_hit(hits, 1, backward=True) == 3
    assert next_hit((), 0, backward=False) is None


def test_first_hit_includes_origin() -> None:
    assert first_hit((1, 3), 3, backward=False) == 3
    assert first_hit((1, 3), 2, backward=True) == 1


def test_match_spans_skip_empty_matches() -> None:
    assert match_spans(compile_pattern("o"), "foo") == [(1, 2), (2, 3)]
    assert match_spans(compile_pattern("x*"), "abc") == []
