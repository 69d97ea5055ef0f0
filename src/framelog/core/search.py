"""Keyword and date-range search over a commit history."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta

from .contracts.commit import Commit

DEFAULT_STOP_WORDS: frozenset[str] = frozenset(
    """
    the a an and or but in on at to for of with by from as is was are were been
    be have has had do does did will would could should may might can what when
    where how why
    """.split()
)

_WORD_RE = re.compile(r"[\w-]+")


def extract_keywords(
    query: str,
    *,
    case_sensitive: bool = False,
    min_keyword_length: int = 2,
    stop_words: Iterable[str] = DEFAULT_STOP_WORDS,
) -> list[str]:
    """Split a natural-language query into search keywords.

    Stop words are matched case-insensitively; words shorter than
    ``min_keyword_length`` are dropped.
    """
    stops = {w.lower() for w in stop_words}
    text = query.strip() if case_sensitive else query.strip().lower()
    return [
        word
        for word in _WORD_RE.findall(text)
        if len(word) >= min_keyword_length and word.lower() not in stops
    ]


def _contains_any(text: str | None, keywords: Sequence[str], case_sensitive: bool) -> bool:
    if not text:
        return False
    haystack = text if case_sensitive else text.lower()
    return any(k in haystack for k in keywords)


def _matches(commit: Commit, keywords: Sequence[str], case_sensitive: bool) -> bool:
    fields = [commit.title, commit.description, commit.version]
    fields.extend(c.text for c in commit.comments)
    fields.extend(c.author.name for c in commit.comments)
    fields.extend(a.label for a in commit.annotations)
    return any(_contains_any(f, keywords, case_sensitive) for f in fields)


def search_commits(
    commits: Sequence[Commit],
    query: str,
    *,
    case_sensitive: bool = False,
    min_keyword_length: int = 2,
    stop_words: Iterable[str] = DEFAULT_STOP_WORDS,
) -> list[Commit]:
    """Return commits mentioning at least one keyword of ``query``.

    A query with no usable keywords matches everything.
    """
    keywords = extract_keywords(
        query,
        case_sensitive=case_sensitive,
        min_keyword_length=min_keyword_length,
        stop_words=stop_words,
    )
    if not keywords:
        return list(commits)
    return [c for c in commits if _matches(c, keywords, case_sensitive)]


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)


def search_commits_by_date_range(
    commits: Sequence[Commit], start: datetime, end: datetime
) -> list[Commit]:
    """Return commits with ``start <= timestamp <= end`` (naive bounds are UTC)."""
    start, end = _aware(start), _aware(end)
    return [c for c in commits if start <= c.timestamp <= end]


def get_recent_commits(
    commits: Sequence[Commit], days: int, *, now: datetime | None = None
) -> list[Commit]:
    end = now or datetime.now(UTC)
    return search_commits_by_date_range(commits, end - timedelta(days=days), end)


__all__ = [
    "DEFAULT_STOP_WORDS",
    "extract_keywords",
    "get_recent_commits",
    "search_commits",
    "search_commits_by_date_range",
]
