"""Typed Result container for actions that report failure as data.

Motivation
----------
User-triggered actions (creating a commit, validating a token, running the
backup migration) must never abort the session with an exception. They
return a `Result[T, E]` instead:

- `Ok(value)` / `Err(error)` variants,
- combinators: `map`, `map_err`, `flat_map`,
- helpers: `unwrap`, `expect`, `unwrap_err`, `get_or`,
- `to_payload()` which renders the `{"success": ..., "error": ...}` shape
  consumed by the CLI and the HTTP layer.

Example
-------
>>> from framelog.core.result import ok, err, Result
>>> def parse_count(x: str) -> Result[int, str]:
...     return ok(int(x)) if x.isdigit() else err("not a count")
>>> ok("42").flat_map(parse_count).unwrap()
42
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast, overload

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


class Result(Generic[T, E]):
    """Sum type representing either success (`Ok[T]`) or failure (`Err[E]`)."""

    # ----- Introspection -----------------------------------------------------
    def is_ok(self) -> bool:
        """Return ``True`` if this is an :class:`Ok` value."""
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        """Return ``True`` if this is an :class:`Err` value."""
        return isinstance(self, Err)

    # ----- Unwraps -----------------------------------------------------------
    @overload
    def unwrap(self) -> T: ...
    @overload
    def unwrap(self, default: T) -> T: ...

    def unwrap(self, default: T | None = None) -> T:
        """Return the inner value if ``Ok``, else raise or return ``default``."""
        if isinstance(self, Ok):
            return cast(Ok[T, E], self).value
        if default is not None:
            return default
        raise RuntimeError(f"Attempted to unwrap Err: {self!r}")

    def expect(self, msg: str) -> T:
        """Return the inner value if ``Ok``, else raise ``RuntimeError(msg)``."""
        if isinstance(self, Ok):
            return cast(Ok[T, E], self).value
        raise RuntimeError(msg)

    def unwrap_err(self) -> E:
        """Return the error value if ``Err``, else raise."""
        if isinstance(self, Err):
            return cast(Err[T, E], self).error
        raise RuntimeError(f"Attempted to unwrap_err on Ok: {self!r}")

    def get_or(self, default: T) -> T:
        """Return the success value or a default if ``Err``."""
        return self.unwrap(default)

    # ----- Combinators -------------------------------------------------------
    def map(self, fn: Callable[[T], U]) -> Result[U, E]:
        """Apply ``fn`` to the success value; propagate error unchanged."""
        if isinstance(self, Ok):
            return Ok(fn(cast(Ok[T, E], self).value))
        return cast(Result[U, E], self)

    def map_err(self, fn: Callable[[E], F]) -> Result[T, F]:
        """Apply ``fn`` to the error value; propagate success unchanged."""
        if isinstance(self, Err):
            return Err(fn(cast(Err[T, E], self).error))
        return cast(Result[T, F], self)

    def flat_map(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain computations that already return a :class:`Result`."""
        if isinstance(self, Ok):
            return fn(cast(Ok[T, E], self).value)
        return cast(Result[U, E], self)

    # ----- Presentation ------------------------------------------------------
    def to_payload(self, key: str = "value") -> dict[str, Any]:
        """Render as ``{"success": True, key: value}`` or ``{"success": False, "error": ...}``.

        Pydantic models are dumped in JSON mode so the payload is wire-safe.
        """
        if isinstance(self, Ok):
            value = cast(Ok[T, E], self).value
            dump = getattr(value, "model_dump", None)
            return {"success": True, key: dump(mode="json", by_alias=True) if dump else value}
        return {"success": False, "error": str(cast(Err[T, E], self).error)}

    def __repr__(self) -> str:  # pragma: no cover - trivial representation
        if isinstance(self, Ok):
            return f"Ok({cast(Ok[T, E], self).value!r})"
        if isinstance(self, Err):
            return f"Err({cast(Err[T, E], self).error!r})"
        return "Result(?)"


@dataclass(frozen=True)
class Ok(Result[T, E]):
    """Successful result wrapping a value of type ``T``."""

    value: T


@dataclass(frozen=True)
class Err(Result[T, E]):
    """Failed result wrapping an error payload of type ``E``."""

    error: E


def ok(value: T) -> Result[T, E]:
    """Construct :class:`Ok` with better type inference at call sites."""
    return Ok(value)


def err(error: E) -> Result[T, E]:
    """Construct :class:`Err` with better type inference at call sites."""
    return Err(error)
