"""Shared FastAPI dependencies — DB session, auth context, result helpers."""

from collections.abc import Generator
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from bitwork.models import Profile
from bitwork.services import ActionResult

# HTTP status per error code; categories first, refinements after
ERROR_STATUS = {
    "not_found": 404,
    "unauthorized": 403,
    "validation_error": 400,
    "conflict": 409,
    "invalid_state": 409,
    "self_application": 400,
    "duplicate_application": 409,
    "job_closed": 409,
    "invalid_transition": 409,
}


def get_db(request: Request) -> Generator[Session, None, None]:
    with request.app.state.database.session() as db:
        yield db


def get_current_user(request: Request, db: Session) -> Optional[Profile]:
    """Return the signed-in user's Profile or None (reads session cookie)."""
    user_id = request.session.get("user_id")
    if user_id is None:
        return None
    return db.get(Profile, user_id)


def flash(request: Request, message: str, kind: str = "success") -> None:
    request.session["flash"] = [message, kind]


def pop_flash(request: Request) -> Optional[tuple[str, str]]:
    if "session" not in request.scope:
        return None
    value = request.session.pop("flash", None)
    return tuple(value) if value else None


def wants_json(request: Request) -> bool:
    return "application/json" in request.headers.get("accept", "")


def error_status(result: ActionResult) -> int:
    return ERROR_STATUS.get(result.code or "", 400)


def redirect_back(request: Request, fallback: str) -> RedirectResponse:
    """Redirect to a local referer when present, otherwise to ``fallback``."""
    referer = request.headers.get("referer", "")
    base = str(request.base_url)
    target = referer if referer.startswith(base) else fallback
    return RedirectResponse(target, status_code=303)


def respond(
    request: Request,
    result: ActionResult,
    fallback: str,
    message: str,
    payload=None,
    prefer_referer: bool = True,
):
    """Finish a form POST: JSON for API callers, flash + redirect for browsers."""
    if wants_json(request):
        if result.success:
            return JSONResponse({"success": True, **(payload or {})})
        return JSONResponse(
            {"success": False, "error": result.error, "code": result.code},
            status_code=error_status(result),
        )

    if result.success:
        flash(request, message, "success")
    else:
        flash(request, result.error or "Something went wrong", "error")
    if result.success and not prefer_referer:
        return RedirectResponse(fallback, status_code=303)
    return redirect_back(request, fallback)
