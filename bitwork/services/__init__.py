"""Marketplace operations: job and application lifecycles, notifications, reporting."""

from .base import ActionResult
from .errors import (
    BitworkError,
    ConflictError,
    DuplicateApplicationError,
    InvalidStateError,
    InvalidTransitionError,
    JobClosedError,
    NotFoundError,
    SelfApplicationError,
    UnauthorizedError,
    ValidationError,
)

__all__ = [
    "ActionResult",
    "BitworkError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
    "ConflictError",
    "InvalidStateError",
    "SelfApplicationError",
    "DuplicateApplicationError",
    "JobClosedError",
    "InvalidTransitionError",
]
