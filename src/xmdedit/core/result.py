"""Typed success/failure container used across the edit pipeline.

The finalizer, the apply controller and the component-edit agent all return
a `Result` instead of raising: a rejected model proposal or a stale anchor is
an expected outcome, not an exceptional one.

Variants
--------
- `Ok(value)` carries the successful payload.
- `Err(error)` carries the failure payload (usually an `EditRejection` or a
  short message string).

Example
-------
>>> from xmdedit.core.result import ok, err, Result
>>> def width_pct(raw: str) -> Result[int, str]:
...     digits = raw.rstrip("%")
...     return ok(int(digits)) if digits.isdigit() else err(f"bad width {raw!r}")
>>> ok("80%").flat_map(width_pct).unwrap()
80
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, cast, overload

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


class Result(Generic[T, E]):
    """Either `Ok[T]` or `Err[E]`."""

    def is_ok(self) -> bool:
        """Return ``True`` for :class:`Ok`."""
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        """Return ``True`` for :class:`Err`."""
        return isinstance(self, Err)

    @overload
    def unwrap(self) -> T: ...
    @overload
    def unwrap(self, default: T) -> T: ...

    def unwrap(self, default: T | None = None) -> T:
        """Return the success value.

        On ``Err`` the optional ``default`` is returned; without one a
        :class:`RuntimeError` is raised.
        """
        if isinstance(self, Ok):
            return cast(Ok[T, E], self).value
        if default is not None:
            return default
        raise RuntimeError(f"unwrap() called on {self!r}")

    def expect(self, msg: str) -> T:
        """Return the success value or raise ``RuntimeError(msg)``."""
        if isinstance(self, Ok):
            return cast(Ok[T, E], self).value
        raise RuntimeError(msg)

    def unwrap_err(self) -> E:
        """Return the error payload, raising if this is ``Ok``."""
        if isinstance(self, Err):
            return cast(Err[T, E], self).error
        raise RuntimeError(f"unwrap_err() called on {self!r}")

    def map(self, fn: Callable[[T], U]) -> Result[U, E]:
        """Transform the success value, leaving an error untouched."""
        if isinstance(self, Ok):
            return Ok(fn(cast(Ok[T, E], self).value))
        return cast(Result[U, E], self)

    def map_err(self, fn: Callable[[E], F]) -> Result[T, F]:
        """Transform the error payload, leaving a success untouched."""
        if isinstance(self, Err):
            return Err(fn(cast(Err[T, E], self).error))
        return cast(Result[T, F], self)

    def flat_map(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain a step that itself returns a :class:`Result`."""
        if isinstance(self, Ok):
            return fn(cast(Ok[T, E], self).value)
        return cast(Result[U, E], self)

    def or_else(self, fallback: Callable[[E], Result[T, E]]) -> Result[T, E]:
        """Recover from ``Err`` by calling ``fallback(error)``."""
        if isinstance(self, Err):
            return fallback(cast(Err[T, E], self).error)
        return self

    def get_or(self, default: T) -> T:
        """Return the success value, or ``default`` on ``Err``."""
        return self.unwrap(default)

    def __repr__(self) -> str:  # pragma: no cover - trivial representation
        if isinstance(self, Ok):
            return f"Ok({cast(Ok[T, E], self).value!r})"
        if isinstance(self, Err):
            return f"Err({cast(Err[T, E], self).error!r})"
        return "Result(?)"


@dataclass(frozen=True)
class Ok(Result[T, E]):
    """Successful outcome."""

    value: T


@dataclass(frozen=True)
class Err(Result[T, E]):
    """Failed outcome."""

    error: E


def ok(value: T) -> Result[T, E]:
    """Build an :class:`Ok` with call-site type inference."""
    return Ok(value)


def err(error: E) -> Result[T, E]:
    """Build an :class:`Err` with call-site type inference."""
    return Err(error)


def never(msg: str) -> NoReturn:
    """Mark an unreachable branch."""
    raise RuntimeError(msg)
