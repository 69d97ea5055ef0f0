# -----------------------------------------------------------------------------
# Feedback sources: where the comments attached to a commit come from.
#
# The commit flow only depends on the `FeedbackSource` protocol: a `fetch()`
# that returns a `FeedbackFetch` ({success, items?, error?}) and never raises.
# A failed fetch is not fatal; the commit is created with zero new comments
# and the failure reason is kept for display.
#
# Implementations
# ---------------
# - FigmaCommentSource : GET {base}/files/{file_key}/comments with the
#   `X-Figma-Token` header, using only `urllib.request`. Unit tests patch the
#   internal `_get()` seam instead of touching the network.
# - StaticFeedbackSource : serves a fixed list (tests, CLI `--comments-file`).
# -----------------------------------------------------------------------------
from __future__ import annotations

import json
import urllib.error
import urllib.request
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import ValidationError

from framelog.core.contracts.commit import Author, Comment, utcnow
from framelog.core.errors import FeedbackFetchError
from framelog.core.result import Result, err, ok
from framelog.core.settings import get_logger, load_settings

logger = get_logger(__name__)

MISSING_TOKEN_ERROR = "No Personal Access Token found. Please configure it in settings."
INVALID_TOKEN_ERROR = "Invalid or expired token. Please update your PAT in settings."
MISSING_FILE_ERROR = "Unable to determine current file."


@dataclass(frozen=True, slots=True)
class FeedbackFetch:
    """Outcome of one fetch: items on success, a displayable reason on failure."""

    success: bool
    items: list[Comment] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> FeedbackFetch:
        return cls(success=False, error=error)


class FeedbackSource(Protocol):
    def fetch(self) -> FeedbackFetch: ...


@dataclass(slots=True)
class StaticFeedbackSource:
    """A source that always returns the same comments."""

    items: Sequence[Comment] = ()

    def fetch(self) -> FeedbackFetch:
        return FeedbackFetch(success=True, items=list(self.items))


def comment_from_api(payload: Mapping[str, Any]) -> Comment:
    """Map one REST comment object onto :class:`Comment`."""
    user = payload.get("user") or {}
    client_meta = payload.get("client_meta") or {}
    node_id = client_meta.get("node_id") if isinstance(client_meta, Mapping) else None
    return Comment(
        id=str(payload["id"]) if payload.get("id") else None,
        author=Author(name=user.get("handle") or "Unknown", email=user.get("email")),
        timestamp=payload.get("created_at") or utcnow(),
        text=payload.get("message") or "",
        node_id=node_id,
        parent_id=payload.get("parent_id") or None,
    )


@dataclass(slots=True)
class FigmaCommentSource:
    """Fetch the comment threads of one design file over the REST API.

    Parameters
    ----------
    file_key:
        Key of the design file whose comments are fetched.
    token_provider:
        Callable returning the personal access token, or ``None`` when none is
        configured. Resolved at fetch time so a token stored mid-session is used.
    base_url:
        REST base URL, e.g. ``"https://api.figma.com/v1"``.
    timeout_seconds:
        Network timeout for each request.
    """

    file_key: str | None
    token_provider: Callable[[], str | None]
    base_url: str = "https://api.figma.com/v1"
    timeout_seconds: float = 15.0

    @classmethod
    def from_env(
        cls, file_key: str | None = None, token_provider: Callable[[], str | None] | None = None
    ) -> FigmaCommentSource:
        """Build a source from settings; the token falls back to ``FIGMA_TOKEN``."""
        cfg = load_settings()
        return cls(
            file_key=file_key or cfg.file_key,
            token_provider=token_provider or (lambda: cfg.figma_token),
            base_url=cfg.figma_api_base.rstrip("/"),
            timeout_seconds=cfg.request_timeout,
        )

    def fetch(self) -> FeedbackFetch:
        token = self.token_provider()
        if not token:
            return FeedbackFetch.failed(MISSING_TOKEN_ERROR)
        if not self.file_key:
            return FeedbackFetch.failed(MISSING_FILE_ERROR)

        try:
            body = self._get(f"{self.base_url}/files/{self.file_key}/comments", token)
            raw_items = body.get("comments") or []
            items = [comment_from_api(item) for item in raw_items if isinstance(item, Mapping)]
        except FeedbackFetchError as exc:
            logger.warning("Comment fetch failed for file %s: %s", self.file_key, exc)
            return FeedbackFetch.failed(str(exc))
        except (KeyError, ValidationError) as exc:
            logger.warning("Comment payload for file %s was malformed: %s", self.file_key, exc)
            return FeedbackFetch.failed(f"Malformed comments payload: {exc}")

        logger.info("Fetched %d comment(s) for file %s", len(items), self.file_key)
        return FeedbackFetch(success=True, items=items)

    def validate_token(self, token: str) -> Result[None, str]:
        """Check ``token`` against ``GET {base}/me``."""
        try:
            self._get(f"{self.base_url}/me", token)
        except FeedbackFetchError as exc:
            return err(str(exc))
        return ok(None)

    def _get(self, url: str, token: str) -> dict[str, Any]:
        """Perform an authenticated GET and decode the JSON body.

        Main seam for unit tests.

        Raises
        ------
        FeedbackFetchError
            On HTTP errors (403 maps to the invalid-token message), network
            errors, or an undecodable body.
        """
        request = urllib.request.Request(url=url, headers={"X-Figma-Token": token}, method="GET")
        try:
            with urllib.request.urlopen(request, timeout=self.timeout_seconds) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            if exc.code == 403:
                raise FeedbackFetchError(INVALID_TOKEN_ERROR) from exc
            raise FeedbackFetchError(f"API error: {exc.code} {exc.reason}") from exc
        except urllib.error.URLError as exc:
            raise FeedbackFetchError(f"Network error: {exc.reason}") from exc
        except TimeoutError as exc:
            raise FeedbackFetchError("Network error: request timed out") from exc

        try:
            decoded = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise FeedbackFetchError("Failed to decode API response as JSON") from exc
        if not isinstance(decoded, dict):
            raise FeedbackFetchError("Unexpected API response shape")
        return decoded


__all__ = [
    "FeedbackFetch",
    "FeedbackSource",
    "FigmaCommentSource",
    "StaticFeedbackSource",
    "comment_from_api",
]
