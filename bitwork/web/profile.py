"""Profile routes — role selection, profile edits, preferences."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from bitwork.models import ROLES, THEMES
from bitwork.services import profiles

from .dependencies import get_current_user, get_db, respond

router = APIRouter(prefix="/profile")

PROFILE_FORM_FIELDS = (
    "role", "full_name", "location", "phone", "bio", "skills", "availability", "avatar_url",
)


def _render(request: Request, db: Session, user, **extra):
    context = {
        "request": request,
        "user": user,
        "preferences": profiles.get_preferences(db, user.id),
        "roles": ROLES,
        "themes": THEMES,
    }
    context.update(extra)
    status_code = context.pop("status_code", 200)
    return request.app.state.templates.TemplateResponse(
        "profile/index.html", context, status_code=status_code
    )


@router.get("")
def profile_page(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)
    return _render(request, db, user)


@router.post("")
async def update_profile(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    form = await request.form()
    # Only fields present in the form are patched
    patch = {key: form.get(key) for key in PROFILE_FORM_FIELDS if key in form}
    had_role = bool(user.role)
    result = profiles.update_profile(db, user.id, patch)
    if not result.success:
        return _render(
            request, db, user,
            flash_message=result.error, flash_type="error", status_code=400,
        )

    if not had_role:
        return respond(
            request, result, "/dashboard", "Welcome to Bitwork!", prefer_referer=False
        )
    return respond(request, result, "/profile", "Profile updated.")


@router.post("/preferences")
async def update_preferences(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    form = await request.form()
    # Unchecked checkboxes are absent from the form body
    patch = {
        "email_notifications": form.get("email_notifications"),
        "push_notifications": form.get("push_notifications"),
    }
    if "theme" in form:
        patch["theme"] = form.get("theme")

    result = profiles.update_preferences(db, user.id, patch)
    return respond(request, result, "/profile", "Preferences saved.")
