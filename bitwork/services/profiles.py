"""Profile bootstrap on first sign-in, profile edits and user preferences."""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from bitwork.models import ROLES, THEMES, Profile, UserPreference
from bitwork.utils.text_processing import clean_text, parse_bool, parse_skills

from .base import ActionResult, action
from .errors import NotFoundError, ValidationError

logger = logging.getLogger("bitwork.profiles")

EDITABLE_TEXT_FIELDS = ("full_name", "location", "avatar_url", "phone", "bio", "availability")


def get_profile(db: Session, user_id: str) -> Optional[Profile]:
    return db.get(Profile, user_id)


@action("Failed to create profile")
def ensure_profile(db: Session, user_id: str, full_name: Optional[str] = None) -> ActionResult:
    """Return the user's profile, creating it and default preferences on first sign-in."""
    if not user_id:
        raise ValidationError("Missing user identifier")

    profile = db.get(Profile, user_id)
    if profile is not None:
        return ActionResult.ok(profile)

    profile = Profile(id=user_id, full_name=clean_text(full_name), skills=[])
    db.add(profile)
    db.add(UserPreference(user_id=user_id))
    db.flush()
    logger.info("Created profile for %s", user_id)
    return ActionResult.ok(profile)


@action("Failed to update profile")
def update_profile(db: Session, user_id: str, patch: dict[str, Any]) -> ActionResult:
    """Apply a partial update to the caller's own profile."""
    profile = db.get(Profile, user_id)
    if profile is None:
        raise NotFoundError("Profile not found")

    if "role" in patch:
        role = clean_text(patch["role"])
        if role not in ROLES:
            raise ValidationError("Role must be provider or seeker")
        profile.role = role

    for field_name in EDITABLE_TEXT_FIELDS:
        if field_name in patch:
            setattr(profile, field_name, clean_text(patch[field_name]))

    if "skills" in patch:
        profile.skills = parse_skills(patch["skills"])

    db.flush()
    return ActionResult.ok(profile)


def get_preferences(db: Session, user_id: str) -> Optional[UserPreference]:
    return db.get(UserPreference, user_id)


@action("Failed to update preferences")
def update_preferences(db: Session, user_id: str, patch: dict[str, Any]) -> ActionResult:
    if db.get(Profile, user_id) is None:
        raise NotFoundError("Profile not found")

    prefs = db.get(UserPreference, user_id)
    if prefs is None:
        prefs = UserPreference(user_id=user_id)
        db.add(prefs)

    if "email_notifications" in patch:
        prefs.email_notifications = parse_bool(patch["email_notifications"])
    if "push_notifications" in patch:
        prefs.push_notifications = parse_bool(patch["push_notifications"])
    if "theme" in patch:
        theme = clean_text(patch["theme"]) or "system"
        if theme not in THEMES:
            raise ValidationError(f"Theme must be one of: {', '.join(THEMES)}")
        prefs.theme = theme
    if "default_filters" in patch:
        filters = patch["default_filters"]
        if filters is not None and not isinstance(filters, dict):
            raise ValidationError("Default filters must be a mapping")
        prefs.default_filters = filters or None

    db.flush()
    return ActionResult.ok(prefs)
