"""Validation utilities for user-supplied identifiers.

Every pattern is guarded by an explicit length cap before the regex runs,
so adversarial inputs cannot trigger pathological backtracking.
"""
from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Compiled patterns
# ---------------------------------------------------------------------------
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
_URL_RE = re.compile(r"^https?://[a-zA-Z0-9.\-]+(:[0-9]{1,5})?(/.*)?$")
_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_RECORD_ID_RE = re.compile(r"^[A-Za-z0-9\-]{1,64}$")

_MAX_EMAIL_INPUT = 254  # RFC 5321 path limit
_MAX_INPUT = 512


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address.  Uniqueness is case-insensitive."""
    return email.strip().lower()


def validate_email(email: str) -> bool:
    """Return True if email has a valid format."""
    if not email or not isinstance(email, str):
        return False
    if len(email) > _MAX_EMAIL_INPUT:
        return False
    return bool(_EMAIL_RE.match(email))


def validate_url(url: str) -> bool:
    """Return True if url is a valid http/https URL."""
    if not url or not isinstance(url, str):
        return False
    if len(url) > _MAX_INPUT:
        return False
    return bool(_URL_RE.match(url))


def validate_slug(slug: str) -> bool:
    """Return True for lowercase, hyphen-separated alphanumeric slugs."""
    if not slug or not isinstance(slug, str):
        return False
    if len(slug) > _MAX_INPUT:
        return False
    return bool(_SLUG_RE.match(slug))


def validate_record_id(record_id: str) -> bool:
    """Return True if *record_id* looks like an id this service issued."""
    if not record_id or not isinstance(record_id, str):
        return False
    return bool(_RECORD_ID_RE.match(record_id))


__all__ = [
    "normalize_email",
    "validate_email",
    "validate_record_id",
    "validate_slug",
    "validate_url",
]
