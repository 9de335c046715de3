"""Lead service — cleans lead input before it reaches the sync engine.

All free text (name, address, notes, move notes) is sanitized with
bleach.clean() to strip HTML tags. Email gets a sanity-check regex.
"""

import re

import bleach

from leadboard.errors import PreconditionError

# Loose sanity check, not full RFC 5322
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

TEXT_FIELDS = ("name", "phone_number", "address", "notes")


def sanitize(text):
    """Strip all HTML tags from user input."""
    if text is None:
        return text
    return bleach.clean(str(text), tags=[], strip=True).strip()


def clean_lead_data(data, partial=False):
    """Validate and sanitize a lead payload from the API.

    Args:
        data: Raw JSON dict.
        partial: True for updates — only the keys present are checked.

    Returns:
        A new dict holding only lead fields.

    Raises:
        PreconditionError: If email is missing (on create) or malformed,
            or a field has the wrong type.
    """
    cleaned = {}
    for key in TEXT_FIELDS:
        if key in data:
            cleaned[key] = sanitize(data[key]) or ""

    if "email" in data or not partial:
        email = _text(data, "email").strip().lower()
        if not email:
            raise PreconditionError("Email is required.")
        if not EMAIL_RE.match(email):
            raise PreconditionError(f"Invalid email address '{email}'.")
        cleaned["email"] = email

    for key in ("status", "priority"):
        if key in data:
            cleaned[key] = _text(data, key).strip() or None

    return cleaned


def _text(data, key):
    """``data[key]`` as a string; missing or null becomes ""."""
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise PreconditionError(f"Field '{key}' must be a string.")
    return value
