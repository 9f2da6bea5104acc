"""Logging setup: rotating file + console, each line tagged with the running operation."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (%(operation)s): %(message)s"

_operation: ContextVar[str] = ContextVar("bitwork_operation", default="-")


@contextmanager
def operation_context(name: str) -> Iterator[None]:
    """Tag every record logged inside the block with ``name``."""
    token = _operation.set(name)
    try:
        yield
    finally:
        _operation.reset(token)


def current_operation() -> str:
    return _operation.get()


class OperationFilter(logging.Filter):
    """Copy the running operation name onto each record as ``operation``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "operation"):
            record.operation = _operation.get()
        return True


def setup_logging(log_dir: str = "logs", level: int | str = logging.INFO) -> logging.Logger:
    """Configure the ``bitwork`` logger with rotating file and console output.

    Records from ``bitwork.*`` children propagate here, so the operation tag
    is added by a handler filter rather than a logger filter.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("bitwork")
    logger.setLevel(level)

    # Re-init replaces handlers instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    operation_filter = OperationFilter()

    file_handler = RotatingFileHandler(
        log_path / "bitwork.log",
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    console_handler = logging.StreamHandler(sys.stdout)

    for handler in (file_handler, console_handler):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(operation_filter)
        logger.addHandler(handler)

    return logger
