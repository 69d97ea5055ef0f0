"""Base model shared by every persisted or wire-facing contract.

Python attributes are snake_case; the JSON shape stored in chunk keys and
returned by the HTTP API is camelCase (``totalNodes``, ``changelogFrameId``).
Both spellings are accepted on input so records written by older builds and
hand-written fixtures validate alike.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """camelCase-on-the-wire envelope for all framelog contracts."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump to a JSON-safe dict using wire (camelCase) keys, omitting ``None``."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = ["WireModel"]
