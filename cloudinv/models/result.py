"""Result type returned by every collaborator call.

A call either succeeds with a payload or fails with a human-readable
reason. Engines branch on the concrete type instead of inspecting the
payload for an error marker.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful call carrying its payload."""

    value: T


@dataclass(frozen=True)
class Failure:
    """Failed call. ``status_code`` is set when the failure came from HTTP."""

    reason: str
    status_code: int | None = None


ServiceResult = Success[T] | Failure
