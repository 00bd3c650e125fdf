"""Dependency wiring for routes."""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.adapters.auth import AuthVerificationError, JwtTokenService, PasswordHasher
from app.core.logging_safety import safe_log_identifier
from app.repositories.memory import InMemoryStore
from app.schemas.auth import AuthPrincipal
from app.services.auth import AuthService
from app.services.posts import PostService
from app.services.users import UserService

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
logger = logging.getLogger(__name__)


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def get_token_service(request: Request) -> JwtTokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_store(request: Request) -> InMemoryStore:
    return request.app.state.store


async def resolve_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    token_service: Annotated[JwtTokenService, Depends(get_token_service)],
) -> AuthPrincipal | None:
    """Attach the bearer token's principal to the request, or ``None``.

    A missing or invalid token only marks the request unauthenticated;
    whether that is acceptable is decided by the authorization policy.
    """
    correlation_id = _request_correlation_id(request)
    safe_correlation_id = safe_log_identifier(correlation_id, prefix="cid")
    request.state.auth_principal = None

    if credentials is None:
        return None

    if credentials.scheme.lower() != "bearer" or not credentials.credentials:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=invalid_bearer_scheme",
            safe_correlation_id,
            request.method,
            request.url.path,
        )
        return None

    try:
        principal = token_service.verify_token(credentials.credentials)
    except AuthVerificationError as exc:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=token_verification_failed detail=%s",
            safe_correlation_id,
            request.method,
            request.url.path,
            exc,
        )
        return None

    logger.info(
        "auth.accepted correlation_id=%s method=%s path=%s principal_id=%s role=%s",
        safe_correlation_id,
        request.method,
        request.url.path,
        safe_log_identifier(principal.user_id, prefix="pid"),
        principal.role.value,
    )
    request.state.auth_principal = principal
    return principal


def get_auth_service(
    store: Annotated[InMemoryStore, Depends(get_store)],
    token_service: Annotated[JwtTokenService, Depends(get_token_service)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> AuthService:
    return AuthService(store, token_service, hasher)


def get_user_service(store: Annotated[InMemoryStore, Depends(get_store)]) -> UserService:
    return UserService(store)


def get_post_service(store: Annotated[InMemoryStore, Depends(get_store)]) -> PostService:
    return PostService(store)
