"""Stale-page signalling for cached listing views."""

import logging
from typing import Callable

logger = logging.getLogger("bitwork.revalidate")

_listeners: list[Callable[[str], None]] = []


def register(callback: Callable[[str], None]) -> None:
    """Subscribe ``callback`` to stale page paths; a cache or CDN purger plugs in here."""
    if callback not in _listeners:
        _listeners.append(callback)


def unregister(callback: Callable[[str], None]) -> None:
    if callback in _listeners:
        _listeners.remove(callback)


def revalidate(*paths: str) -> None:
    """Tell every listener that the pages at ``paths`` are stale."""
    for path in paths:
        logger.debug("Revalidating %s", path)
        for callback in list(_listeners):
            try:
                callback(path)
            except Exception:
                logger.exception("Revalidation listener failed for %s", path)


def schedule(db, *paths: str) -> None:
    """Queue ``paths`` on the session; they fire after the operation commits."""
    pending = db.info.setdefault("revalidate", [])
    for path in paths:
        if path not in pending:
            pending.append(path)


def flush_pending(db, committed: bool) -> None:
    pending = db.info.pop("revalidate", [])
    if committed and pending:
        revalidate(*pending)
