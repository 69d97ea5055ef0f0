"""Version sequencing for commits.

Two labelling modes are supported:

- **semantic**   ``MAJOR.MINOR.PATCH`` with non-negative integer parts.
- **date-based** ``YYYY-MM-DD`` or ``YYYY-MM-DD.N`` (N >= 1) for the N-th
  extra version created on the same calendar day.

Every function here is pure. A malformed prior label is not an error: it is
read as "start of history" and the result is ``1.0.0`` (semantic) or today's
date (date-based). Date-based helpers take an optional ``today`` so callers
and tests can pin the calendar day; it defaults to the local date.

Ordering
--------
:func:`compare_versions` orders semantic labels component-wise and date labels
by day, then sequence. A semantic label compared with a date label (or with
anything unparseable) falls back to plain string comparison. That fallback is
a known weak spot: ``"10.0.0" < "2026-01-01"`` lexicographically.
"""

from __future__ import annotations

import re
from datetime import date
from functools import cmp_to_key
from typing import NamedTuple

from .contracts.meta import VersionIncrement, VersioningMode

_SEMVER_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)")
_DATE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})(?:\.(\d+))?")

INITIAL_SEMANTIC_VERSION = "1.0.0"


class SemanticVersion(NamedTuple):
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


class DateVersion(NamedTuple):
    day: str
    sequence: int

    def __str__(self) -> str:
        return self.day if self.sequence == 0 else f"{self.day}.{self.sequence}"


# --------------------------------------------------------------------------- #
# Semantic mode
# --------------------------------------------------------------------------- #


def parse_semantic_version(label: str) -> SemanticVersion | None:
    """Parse ``MAJOR.MINOR.PATCH``; return ``None`` on any other shape."""
    match = _SEMVER_RE.fullmatch(label) if label else None
    if match is None:
        return None
    return SemanticVersion(int(match.group(1)), int(match.group(2)), int(match.group(3)))


def is_valid_semantic_version(label: str) -> bool:
    return parse_semantic_version(label) is not None


def increment_semantic_version(current: str, increment: VersionIncrement) -> str:
    """Bump one component of ``current`` and reset the ones below it.

    An unparseable ``current`` restarts the sequence at ``1.0.0``.
    """
    parsed = parse_semantic_version(current)
    if parsed is None:
        return INITIAL_SEMANTIC_VERSION

    if increment == "major":
        return str(SemanticVersion(parsed.major + 1, 0, 0))
    if increment == "minor":
        return str(SemanticVersion(parsed.major, parsed.minor + 1, 0))
    if increment == "patch":
        return str(SemanticVersion(parsed.major, parsed.minor, parsed.patch + 1))
    raise ValueError(f"unknown increment kind: {increment!r}")


def get_next_semantic_version(
    current: str | None, increment: VersionIncrement = "patch"
) -> str:
    """Return the label following ``current``; ``1.0.0`` when there is none."""
    if not current:
        return INITIAL_SEMANTIC_VERSION
    return increment_semantic_version(current, increment)


# --------------------------------------------------------------------------- #
# Date-based mode
# --------------------------------------------------------------------------- #


def parse_date_version(label: str) -> DateVersion | None:
    """Parse ``YYYY-MM-DD[.N]``; an absent suffix is sequence 0."""
    match = _DATE_RE.fullmatch(label) if label else None
    if match is None:
        return None
    try:
        date.fromisoformat(match.group(1))
    except ValueError:
        return None
    sequence = int(match.group(2)) if match.group(2) else 0
    return DateVersion(match.group(1), sequence)


def is_valid_date_version(label: str) -> bool:
    return parse_date_version(label) is not None


def format_current_date(today: date | None = None) -> str:
    """Return ``today`` (default: the local date) as ``YYYY-MM-DD``."""
    return (today or date.today()).isoformat()


def get_next_date_version(current: str | None, today: date | None = None) -> str:
    """Return today's label, or today's next ``.N`` if ``current`` is from today."""
    day = format_current_date(today)
    parsed = parse_date_version(current) if current else None
    if parsed is None or parsed.day != day:
        return day
    return str(DateVersion(day, parsed.sequence + 1))


# --------------------------------------------------------------------------- #
# Mode dispatch and ordering
# --------------------------------------------------------------------------- #


def next_version(
    mode: VersioningMode,
    current: str | None,
    increment: VersionIncrement = "patch",
    *,
    today: date | None = None,
) -> str:
    """Compute the next label for ``mode`` given the prior label."""
    if mode == "date-based":
        return get_next_date_version(current, today=today)
    return get_next_semantic_version(current, increment)


def _cmp(a: object, b: object) -> int:
    return (a > b) - (a < b)  # type: ignore[operator]


def compare_versions(a: str, b: str) -> int:
    """Three-way comparison of two labels (negative, zero, positive)."""
    sem_a, sem_b = parse_semantic_version(a), parse_semantic_version(b)
    if sem_a is not None and sem_b is not None:
        return _cmp(tuple(sem_a), tuple(sem_b))

    date_a, date_b = parse_date_version(a), parse_date_version(b)
    if date_a is not None and date_b is not None:
        return _cmp((date_a.day, date_a.sequence), (date_b.day, date_b.sequence))

    return _cmp(a, b)


def sort_versions(labels: list[str], *, reverse: bool = False) -> list[str]:
    """Return ``labels`` sorted with :func:`compare_versions`."""
    return sorted(labels, key=cmp_to_key(compare_versions), reverse=reverse)


__all__ = [
    "INITIAL_SEMANTIC_VERSION",
    "DateVersion",
    "SemanticVersion",
    "compare_versions",
    "format_current_date",
    "get_next_date_version",
    "get_next_semantic_version",
    "increment_semantic_version",
    "is_valid_date_version",
    "is_valid_semantic_version",
    "next_version",
    "parse_date_version",
    "parse_semantic_version",
    "sort_versions",
]
