"""Result type for explicit error handling.

Every fallible step of a release flow returns ``Ok(value)`` or ``Err(error)``
instead of raising, so the caller decides what a failure means at each seam.

Usage:
    match resolve_context(event, list_releases=hosting_for):
        case Ok(context):
            ...
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful result carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed result carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
