"""Explicit operation outcomes.

Lifecycle operations return ``Ok(value)`` or ``Err(kind, detail)`` instead of
raising for expected failures, so every caller has to decide what a failed
debit or a rejected transition means for it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories surfaced by lifecycle operations."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    INSUFFICIENT_STOCK = "insufficient_stock"
    CONFLICT = "conflict"


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    kind: ErrorKind
    detail: str

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]


def validation_error(detail: str) -> Err:
    return Err(ErrorKind.VALIDATION, detail)


def not_found(detail: str) -> Err:
    return Err(ErrorKind.NOT_FOUND, detail)


def invalid_transition(detail: str) -> Err:
    return Err(ErrorKind.INVALID_TRANSITION, detail)


def insufficient_stock(detail: str) -> Err:
    return Err(ErrorKind.INSUFFICIENT_STOCK, detail)


def conflict(detail: str) -> Err:
    return Err(ErrorKind.CONFLICT, detail)
