"""User routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.routes.dependencies import get_user_service, resolve_principal
from app.schemas.auth import AuthPrincipal
from app.schemas.error import ErrorResponse
from app.schemas.user import UserProfile
from app.services.users import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "/profile",
    response_model=UserProfile,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_profile(
    principal: Annotated[AuthPrincipal | None, Depends(resolve_principal)],
    service: Annotated[UserService, Depends(get_user_service)],
) -> UserProfile:
    return service.get_profile(principal=principal)
