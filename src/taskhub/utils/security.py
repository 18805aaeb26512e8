"""Security utilities.

This module provides:
- Password hashing and verification (bcrypt)
- Record id and invite token generation
"""
from __future__ import annotations

import secrets
import uuid

import bcrypt

# bcrypt only looks at the first 72 bytes of its input.
_BCRYPT_MAX_BYTES = 72


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a plain password using bcrypt.

    Args:
        password: Plain text password
        rounds: bcrypt work factor (log2 of the iteration count)

    Returns:
        bcrypt hash as a string

    Example:
        ```python
        hashed = hash_password("secret123", rounds=4)
        assert verify_password("secret123", hashed)
        ```
    """
    password_bytes = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored hash.

    Malformed hashes (including the unusable placeholder credential of a
    pending invite) never verify.

    Args:
        plain_password: Plain text password from user input
        hashed_password: Previously hashed password from the store

    Returns:
        True if the password matches, False otherwise
    """
    password_bytes = plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        return False


def unusable_password() -> str:
    """Return a credential string that no password can ever match."""
    return f"!{secrets.token_hex(16)}"


def generate_id() -> str:
    """Generate a random record id (UUID4 string)."""
    return str(uuid.uuid4())


def generate_invite_token(nbytes: int = 32) -> str:
    """Generate an invite token: *nbytes* random bytes, hex encoded.

    The default of 32 bytes gives 256 bits of entropy.
    """
    return secrets.token_hex(nbytes)


__all__ = [
    "generate_id",
    "generate_invite_token",
    "hash_password",
    "unusable_password",
    "verify_password",
]
