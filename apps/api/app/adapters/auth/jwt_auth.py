"""JWT bearer token issuer and verifier."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import jwt
from pydantic import ValidationError

from app.adapters.auth.base import AuthVerificationError, TokenIssuer, TokenVerifier
from app.schemas.auth import AuthPrincipal, TokenClaims
from app.schemas.user import UserRole

TOKEN_VALIDITY = timedelta(days=7)
_REQUIRED_CLAIMS = ["sub", "email", "role", "iat", "exp"]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class JwtTokenService(TokenIssuer, TokenVerifier):
    """Signs and verifies self-contained HMAC JWTs.

    Validity is checked against the injected clock rather than the wall
    clock so the same token, key and instant always give the same answer.
    """

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._clock = clock

    def issue_token(self, subject_id: str, email: str, role: UserRole) -> str:
        issued_at = int(self._clock().timestamp())
        claims = TokenClaims(
            sub=subject_id,
            email=email,
            role=role,
            iat=issued_at,
            exp=issued_at + int(TOKEN_VALIDITY.total_seconds()),
        )
        return jwt.encode(claims.model_dump(mode="json"), self._secret, algorithm=self._algorithm)

    def verify_token(self, token: str) -> AuthPrincipal:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={
                    "require": _REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
        except jwt.InvalidSignatureError as exc:
            raise AuthVerificationError("Invalid bearer token signature") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthVerificationError("Invalid bearer token") from exc

        try:
            claims = TokenClaims.model_validate(payload)
        except ValidationError as exc:
            raise AuthVerificationError("Bearer token claims are malformed") from exc

        now = int(self._clock().timestamp())
        if claims.exp - claims.iat > TOKEN_VALIDITY.total_seconds() or claims.exp <= claims.iat:
            raise AuthVerificationError("Bearer token validity window is invalid")
        if claims.iat > now:
            raise AuthVerificationError("Bearer token is not yet valid")
        if claims.exp <= now:
            raise AuthVerificationError("Bearer token has expired")

        return claims.to_principal()


__all__ = ["JwtTokenService", "TOKEN_VALIDITY"]
