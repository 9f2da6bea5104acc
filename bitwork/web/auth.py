"""Identity handoff from the external identity provider, and logout.

Credentials are never checked here. The identity-aware proxy in front of the
app authenticates the user and forwards the identity in request headers; the
callback turns that into a session and makes sure a profile exists.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from bitwork.services import profiles

from .dependencies import get_db

logger = logging.getLogger("bitwork.web.auth")

router = APIRouter()


@router.get("/auth/callback")
def auth_callback(request: Request, db: Session = Depends(get_db)):
    auth = request.app.state.config.auth
    user_id = request.headers.get(auth.user_id_header, "").strip()
    email = request.headers.get(auth.email_header, "").strip().lower()
    name = request.headers.get(auth.name_header, "").strip()

    if not user_id:
        logger.warning("Auth callback without identity header %s", auth.user_id_header)
        return request.app.state.templates.TemplateResponse(
            "error.html",
            {"request": request, "error": "We could not verify your sign-in. Please try again."},
            status_code=401,
        )

    result = profiles.ensure_profile(db, user_id, full_name=name or None)
    if not result.success:
        return request.app.state.templates.TemplateResponse(
            "error.html", {"request": request, "error": result.error}, status_code=400
        )

    request.session["user_id"] = user_id
    request.session["email"] = email

    profile = result.data
    if not profile.role:
        # First sign-in: pick provider or seeker before anything else
        return RedirectResponse("/profile", status_code=303)
    return RedirectResponse("/dashboard", status_code=303)


@router.get("/logout")
def logout(request: Request):
    request.session.clear()
    return RedirectResponse("/", status_code=303)
