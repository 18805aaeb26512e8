"""Credential verification and session tokens."""

from taskhub.auth.service import CredentialService
from taskhub.auth.tokens import TokenService

__all__ = ["CredentialService", "TokenService"]
