"""Uniform write results and the transaction boundary around each operation."""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bitwork.utils.logging_config import operation_context

from . import revalidate
from .errors import BitworkError, ValidationError

logger = logging.getLogger("bitwork.services")


@dataclass
class ActionResult:
    """Outcome of a write operation. Never raised, always returned."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, exc: BitworkError) -> "ActionResult":
        return cls(success=False, error=exc.message, code=exc.code)

    def __bool__(self) -> bool:
        return self.success


def action(failure_message: str) -> Callable:
    """Run a write operation as one transaction and convert failures into results.

    The wrapped function takes the session first and returns an ActionResult.
    Domain errors roll back and surface their message; storage errors roll
    back, get logged with traceback, and surface ``failure_message`` only.
    """

    def decorator(func: Callable[..., ActionResult]) -> Callable[..., ActionResult]:
        @functools.wraps(func)
        def wrapper(db: Session, *args, **kwargs) -> ActionResult:
            with operation_context(func.__name__):
                try:
                    result = func(db, *args, **kwargs)
                    db.commit()
                except BitworkError as exc:
                    db.rollback()
                    revalidate.flush_pending(db, committed=False)
                    logger.info("Rejected (%s): %s", exc.code, exc)
                    return ActionResult.fail(exc)
                except SQLAlchemyError:
                    db.rollback()
                    revalidate.flush_pending(db, committed=False)
                    logger.exception("Storage failure")
                    return ActionResult(
                        success=False, error=failure_message, code=ValidationError.code
                    )
                revalidate.flush_pending(db, committed=True)
                return result

        return wrapper

    return decorator
