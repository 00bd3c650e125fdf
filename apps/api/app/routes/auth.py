"""Registration and login routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.routes.dependencies import get_auth_service
from app.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from app.schemas.error import ErrorResponse
from app.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

# Plain def: bcrypt hashing runs in the threadpool, not on the event loop.


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def register(
    payload: RegisterRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    return service.register(email=payload.email, username=payload.username, password=payload.password)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def login(
    payload: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    return service.login(email=payload.email, password=payload.password)
