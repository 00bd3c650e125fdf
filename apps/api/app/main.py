"""FastAPI application entrypoint."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

from app.adapters.auth import BcryptPasswordHasher, JwtTokenService
from app.core.config import Settings, get_settings
from app.core.logging_safety import safe_log_identifier
from app.errors import ApiError
from app.repositories.base import StoreError
from app.repositories.memory import InMemoryStore
from app.routes import auth_router, posts_router, users_router
from app.schemas.error import ErrorResponse, ValidationIssue

logger = logging.getLogger(__name__)

_OPENAPI_RESPONSE_CODES: dict[str, dict[str, set[str]]] = {
    "/api/v1/auth/register": {"post": {"201", "409", "422"}},
    "/api/v1/auth/login": {"post": {"200", "401", "422"}},
    "/api/v1/users/profile": {"get": {"200", "401", "404"}},
    "/api/v1/posts": {"post": {"201", "401", "422"}, "get": {"200"}},
    "/api/v1/posts/user/my-posts": {"get": {"200", "401"}},
    "/api/v1/posts/{postId}": {
        "get": {"200", "404"},
        "patch": {"200", "401", "403", "404", "422"},
        "delete": {"204", "401", "403", "404"},
    },
    "/api/v1/posts/{postId}/publish": {"patch": {"200", "401", "403", "404"}},
}

_BEARER_PROTECTED_OPERATIONS: set[tuple[str, str]] = {
    ("/api/v1/users/profile", "get"),
    ("/api/v1/posts", "post"),
    ("/api/v1/posts/user/my-posts", "get"),
    ("/api/v1/posts/{postId}", "patch"),
    ("/api/v1/posts/{postId}", "delete"),
    ("/api/v1/posts/{postId}/publish", "patch"),
}


def _apply_contract_response_codes(schema: dict) -> None:
    """Limit documented response codes to each operation's contract."""
    for path, methods in _OPENAPI_RESPONSE_CODES.items():
        path_item = schema.get("paths", {}).get(path)
        if not path_item:
            continue

        for method, allowed_codes in methods.items():
            operation = path_item.get(method)
            if not operation:
                continue

            responses = operation.setdefault("responses", {})
            for status_code in list(responses.keys()):
                if status_code not in allowed_codes:
                    responses.pop(status_code, None)

            for status_code in sorted(allowed_codes):
                responses.setdefault(status_code, {"description": "See API contract"})


def _apply_security_requirements(schema: dict) -> None:
    """Mark only operations that require a principal as bearer-protected.

    Every route resolves an optional principal, so the generated schema would
    otherwise list public reads as protected too.
    """
    for path, path_item in schema.get("paths", {}).items():
        for method, operation in path_item.items():
            if (path, method) in _BEARER_PROTECTED_OPERATIONS:
                operation["security"] = [{"bearerAuth": []}]
            else:
                operation.pop("security", None)


def _validation_issues(exc: RequestValidationError) -> list[dict]:
    return [
        ValidationIssue(
            loc=[part for part in error.get("loc", ()) if isinstance(part, (str, int))],
            msg=str(error.get("msg", "")),
            type=str(error.get("type", "")),
        ).model_dump()
        for error in exc.errors()
    ]


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.getLogger("app").setLevel(settings.log_level)

    app = FastAPI(title="Inkwell API", version="1.0.0", description="Blog API with authentication")
    app.state.settings = settings
    app.state.store = InMemoryStore()
    app.state.token_service = JwtTokenService(settings.jwt_secret, algorithm=settings.jwt_algorithm)
    app.state.password_hasher = BcryptPasswordHasher(rounds=settings.bcrypt_rounds)

    # Bearer tokens travel in a header, so no credentialed CORS is needed.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json", exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_, exc: RequestValidationError) -> JSONResponse:
        payload = ErrorResponse(
            code="VALIDATION_ERROR",
            message="Invalid request payload",
            details={"errors": _validation_issues(exc)},
        )
        return JSONResponse(status_code=422, content=payload.model_dump(mode="json"))

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
        # Storage details stay in the log; the caller gets an opaque error.
        logger.error(
            "store.failure correlation_id=%s method=%s path=%s error=%s",
            safe_log_identifier(getattr(request.state, "correlation_id", None), prefix="cid"),
            request.method,
            request.url.path,
            exc,
        )
        payload = ErrorResponse(code="INTERNAL_ERROR", message="Internal server error")
        return JSONResponse(status_code=500, content=payload.model_dump(mode="json", exclude_none=True))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "request.failed correlation_id=%s method=%s path=%s error_type=%s",
            safe_log_identifier(getattr(request.state, "correlation_id", None), prefix="cid"),
            request.method,
            request.url.path,
            type(exc).__name__,
        )
        payload = ErrorResponse(code="INTERNAL_ERROR", message="Internal server error")
        return JSONResponse(status_code=500, content=payload.model_dump(mode="json", exclude_none=True))

    api_prefix = "/api/v1"
    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(users_router, prefix=api_prefix)
    app.include_router(posts_router, prefix=api_prefix)

    def custom_openapi() -> dict:
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        _apply_contract_response_codes(schema)
        _apply_security_requirements(schema)
        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi

    return app
