"""Registration and login service layer."""

import logging

from app.adapters.auth import PasswordHasher, TokenIssuer
from app.core.logging_safety import safe_log_identifier
from app.errors import email_conflict, unauthenticated
from app.repositories.base import CredentialStore, DuplicateEmailError, UserRecord
from app.schemas.auth import AuthResponse
from app.schemas.user import UserSummary

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, store: CredentialStore, issuer: TokenIssuer, hasher: PasswordHasher) -> None:
        self._store = store
        self._issuer = issuer
        self._hasher = hasher

    def register(self, *, email: str, username: str, password: str) -> AuthResponse:
        safe_email = safe_log_identifier(email, prefix="em")
        if self._store.find_user_by_email(email) is not None:
            logger.info("auth.register_rejected email=%s reason=email_taken", safe_email)
            raise email_conflict()

        password_hash = self._hasher.hash_password(password)
        try:
            user = self._store.create_user(email=email, username=username, password_hash=password_hash)
        except DuplicateEmailError as exc:
            # Lost a race with a concurrent registration for the same email.
            logger.info("auth.register_rejected email=%s reason=email_taken", safe_email)
            raise email_conflict() from exc

        logger.info(
            "auth.registered principal_id=%s email=%s",
            safe_log_identifier(user.id, prefix="pid"),
            safe_email,
        )
        return self._issue_for(user)

    def login(self, *, email: str, password: str) -> AuthResponse:
        user = self._store.find_user_by_email(email)
        # Same error for unknown email and wrong password.
        if user is None or not self._hasher.verify_password(password, user.password_hash):
            logger.warning(
                "auth.login_failed email=%s reason=invalid_credentials",
                safe_log_identifier(email, prefix="em"),
            )
            raise unauthenticated("Invalid credentials")

        logger.info("auth.login principal_id=%s", safe_log_identifier(user.id, prefix="pid"))
        return self._issue_for(user)

    def _issue_for(self, user: UserRecord) -> AuthResponse:
        token = self._issuer.issue_token(user.id, user.email, user.role)
        return AuthResponse(
            access_token=token,
            user=UserSummary(id=user.id, email=user.email, username=user.username),
        )
