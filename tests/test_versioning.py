"""Tests for semantic and date-based version sequencing."""

from __future__ import annotations

from datetime import date

import pytest

from framelog.core.versioning import (
    compare_versions,
    format_current_date,
    get_next_date_version,
    get_next_semantic_version,
    increment_semantic_version,
    is_valid_date_version,
    is_valid_semantic_version,
    next_version,
    parse_date_version,
    parse_semantic_version,
    sort_versions,
)

DAY = date(2026, 1, 1)


@pytest.mark.parametrize(
    ("current", "kind", "expected"),
    [
        ("1.2.3", "patch", "1.2.4"),
        ("1.2.3", "minor", "1.3.0"),
        ("1.2.3", "major", "2.0.0"),
        ("0.0.9", "patch", "0.0.10"),
    ],
)
def test_increment_semantic_version(current: str, kind: str, expected: str) -> None:
    assert increment_semantic_version(current, kind) == expected  # type: ignore[arg-type]


def test_major_then_minor_resets_lower_components() -> None:
    assert increment_semantic_version(increment_semantic_version("3.4.5", "major"), "minor") == "4.1.0"


@pytest.mark.parametrize("label", [None, "", "v1.0.0", "1.0", "1.0.0-beta", " 1.0.0", "1.0.0\n"])
def test_unparseable_prior_label_restarts_at_one(label: str | None) -> None:
    assert get_next_semantic_version(label, "minor") == "1.0.0"


def test_unknown_increment_kind_raises() -> None:
    with pytest.raises(ValueError):
        increment_semantic_version("1.0.0", "micro")  # type: ignore[arg-type]


def test_semantic_parse_and_validity() -> None:
    assert parse_semantic_version("10.20.30") == (10, 20, 30)
    assert str(parse_semantic_version("1.2.3")) == "1.2.3"
    assert is_valid_semantic_version("0.0.0")
    assert not is_valid_semantic_version("1.2.x")


def test_date_version_sequence_on_the_same_day() -> None:
    first = get_next_date_version(None, today=DAY)
    second = get_next_date_version(first, today=DAY)
    third = get_next_date_version(second, today=DAY)
    assert [first, second, third] == ["2026-01-01", "2026-01-01.1", "2026-01-01.2"]


def test_date_version_resets_on_a_new_day() -> None:
    assert get_next_date_version("2025-12-31.4", today=DAY) == "2026-01-01"


def test_date_version_ignores_malformed_prior_label() -> None:
    assert get_next_date_version("1.2.3", today=DAY) == "2026-01-01"
    assert get_next_date_version("2026-13-45", today=DAY) == "2026-01-01"


def test_date_parse_and_validity() -> None:
    parsed = parse_date_version("2026-03-04.7")
    assert parsed is not None and parsed.day == "2026-03-04" and parsed.sequence == 7
    assert is_valid_date_version("2026-03-04")
    assert not is_valid_date_version("2026-3-4")
    assert format_current_date(DAY) == "2026-01-01"


def test_next_version_dispatches_on_mode() -> None:
    assert next_version("semantic", "1.0.0", "minor") == "1.1.0"
    assert next_version("date-based", "2026-01-01", today=DAY) == "2026-01-01.1"
    assert next_version("semantic", None) == "1.0.0"


def test_compare_and_sort_versions() -> None:
    assert compare_versions("1.10.0", "1.9.9") > 0
    assert compare_versions("2026-01-01.2", "2026-01-01.10") < 0
    assert compare_versions("1.0.0", "1.0.0") == 0
    assert sort_versions(["1.10.0", "1.2.0", "1.9.1"]) == ["1.2.0", "1.9.1", "1.10.0"]
    assert sort_versions(["2026-01-02", "2026-01-01.3", "2026-01-01"], reverse=True) == [
        "2026-01-02",
        "2026-01-01.3",
        "2026-01-01",
    ]


def test_sequencer_output_never_decreases() -> None:
    label: str | None = None
    seen: list[str] = []
    for kind in ["patch", "minor", "patch", "major", "patch"]:
        label = next_version("semantic", label, kind)  # type: ignore[arg-type]
        seen.append(label)
    assert all(compare_versions(a, b) < 0 for a, b in zip(seen, seen[1:]))
