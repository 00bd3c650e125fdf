"""Authentication provider interfaces."""

from abc import ABC, abstractmethod

from app.schemas.auth import AuthPrincipal
from app.schemas.user import UserRole


class AuthVerificationError(Exception):
    """Raised when a token cannot be verified or normalized."""


class TokenVerifier(ABC):
    """Provider-neutral token verification interface."""

    @abstractmethod
    def verify_token(self, token: str) -> AuthPrincipal:
        """Verify token and return normalized principal."""


class TokenIssuer(ABC):
    """Mints bearer tokens for an authenticated user."""

    @abstractmethod
    def issue_token(self, subject_id: str, email: str, role: UserRole) -> str:
        """Return a signed token carrying the given identity claims."""


class PasswordHasher(ABC):
    @abstractmethod
    def hash_password(self, password: str) -> str:
        """Return a salted one-way hash of ``password``."""

    @abstractmethod
    def verify_password(self, password: str, password_hash: str) -> bool:
        """Check ``password`` against a stored hash."""


__all__ = ["AuthVerificationError", "PasswordHasher", "TokenIssuer", "TokenVerifier"]
