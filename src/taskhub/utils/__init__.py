"""Utility functions and helpers."""

from taskhub.utils.security import (
    generate_id,
    generate_invite_token,
    hash_password,
    unusable_password,
    verify_password,
)
from taskhub.utils.validation import (
    normalize_email,
    validate_email,
    validate_record_id,
    validate_slug,
    validate_url,
)

__all__ = [
    "generate_id",
    "generate_invite_token",
    "hash_password",
    "normalize_email",
    "unusable_password",
    "validate_email",
    "validate_record_id",
    "validate_slug",
    "validate_url",
    "verify_password",
]
