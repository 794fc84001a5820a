"""Security adapters - Password hashing and session tokens."""

from .passwords import MAX_PASSWORD_BYTES, BcryptCredentialVerifier
from .tokens import JwtSessionTokenIssuer

__all__ = ["MAX_PASSWORD_BYTES", "BcryptCredentialVerifier", "JwtSessionTokenIssuer"]
