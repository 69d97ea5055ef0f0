"""Feedback sources consumed by commit creation."""

from __future__ import annotations

from .source import (
    FeedbackFetch,
    FeedbackSource,
    FigmaCommentSource,
    StaticFeedbackSource,
    comment_from_api,
)

__all__ = [
    "FeedbackFetch",
    "FeedbackSource",
    "FigmaCommentSource",
    "StaticFeedbackSource",
    "comment_from_api",
]
