"""Auth adapters: token issuing/verification and password hashing."""

from .base import AuthVerificationError, PasswordHasher, TokenIssuer, TokenVerifier
from .jwt_auth import TOKEN_VALIDITY, JwtTokenService
from .passwords import BcryptPasswordHasher

__all__ = [
    "AuthVerificationError",
    "BcryptPasswordHasher",
    "JwtTokenService",
    "PasswordHasher",
    "TOKEN_VALIDITY",
    "TokenIssuer",
    "TokenVerifier",
]
