"""Form value parsing and text normalisation helpers."""

import math
import re

# Largest value a 32-bit INTEGER column holds on every supported backend
MAX_AMOUNT = 2**31 - 1

_AMOUNT_RE = re.compile(r"^\$?\s*(\d+(?:,\d{3})*|\d+)(?:\.\d+)?$")


def clean_text(value) -> str | None:
    """Strip a form value; empty strings become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_amount(value, field_name: str = "amount") -> int | None:
    """Parse a money amount like ``500``, ``$1,200`` or ``45.50`` into whole units.

    Returns None for blank input and raises ValueError for anything that is
    not a non-negative number no larger than ``MAX_AMOUNT``.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be a number")
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"{field_name} must be a number")
        if value < 0:
            raise ValueError(f"{field_name} must not be negative")
        return _within_limit(int(value), field_name)

    text = str(value).strip()
    if not text:
        return None
    if text.startswith("-"):
        raise ValueError(f"{field_name} must not be negative")
    match = _AMOUNT_RE.match(text)
    if not match:
        raise ValueError(f"{field_name} must be a number")
    return _within_limit(int(match.group(1).replace(",", "")), field_name)


def _within_limit(amount: int, field_name: str) -> int:
    if amount > MAX_AMOUNT:
        raise ValueError(f"{field_name} must be at most {MAX_AMOUNT:,}")
    return amount


def parse_skills(value) -> list[str]:
    """Normalise skills from a comma-separated string or a list.

    Order is preserved, duplicates (case-insensitive) are dropped.
    """
    if not value:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)

    skills: list[str] = []
    seen: set[str] = set()
    for item in items:
        skill = str(item).strip()
        key = skill.lower()
        if skill and key not in seen:
            seen.add(key)
            skills.append(skill)
    return skills


def parse_bool(value) -> bool:
    """Interpret checkbox-style form values."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"on", "true", "1", "yes"}


def truncate(text: str, length: int = 160) -> str:
    """Shorten text for cards and notification previews."""
    text = (text or "").strip()
    if len(text) <= length:
        return text
    return text[: length - 1].rstrip() + "…"
