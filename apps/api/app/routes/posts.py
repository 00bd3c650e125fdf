"""Post routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status

from app.routes.dependencies import get_post_service, resolve_principal
from app.schemas.auth import AuthPrincipal
from app.schemas.error import ErrorResponse
from app.schemas.post import CreatePostRequest, Post, UpdatePostRequest
from app.services.posts import PostService

router = APIRouter(prefix="/posts", tags=["Posts"])

_OWNER_ONLY_RESPONSES = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.post(
    "",
    response_model=Post,
    status_code=status.HTTP_201_CREATED,
    responses={401: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_post(
    payload: CreatePostRequest,
    principal: Annotated[AuthPrincipal | None, Depends(resolve_principal)],
    service: Annotated[PostService, Depends(get_post_service)],
) -> Post:
    return service.create_post(principal=principal, title=payload.title, content=payload.content)


@router.get("", response_model=list[Post])
async def list_posts(
    service: Annotated[PostService, Depends(get_post_service)],
) -> list[Post]:
    return service.list_posts()


@router.get(
    "/user/my-posts",
    response_model=list[Post],
    responses={401: {"model": ErrorResponse}},
)
async def list_my_posts(
    principal: Annotated[AuthPrincipal | None, Depends(resolve_principal)],
    service: Annotated[PostService, Depends(get_post_service)],
) -> list[Post]:
    return service.list_my_posts(principal=principal)


@router.get(
    "/{postId}",
    response_model=Post,
    responses={404: {"model": ErrorResponse}},
)
async def get_post(
    post_id: Annotated[str, Path(alias="postId")],
    principal: Annotated[AuthPrincipal | None, Depends(resolve_principal)],
    service: Annotated[PostService, Depends(get_post_service)],
) -> Post:
    return service.get_post(principal=principal, post_id=post_id)


@router.patch(
    "/{postId}",
    response_model=Post,
    responses={**_OWNER_ONLY_RESPONSES, 422: {"model": ErrorResponse}},
)
async def update_post(
    post_id: Annotated[str, Path(alias="postId")],
    payload: UpdatePostRequest,
    principal: Annotated[AuthPrincipal | None, Depends(resolve_principal)],
    service: Annotated[PostService, Depends(get_post_service)],
) -> Post:
    return service.update_post(
        principal=principal,
        post_id=post_id,
        title=payload.title,
        content=payload.content,
    )


@router.patch(
    "/{postId}/publish",
    response_model=Post,
    responses=_OWNER_ONLY_RESPONSES,
)
async def publish_post(
    post_id: Annotated[str, Path(alias="postId")],
    principal: Annotated[AuthPrincipal | None, Depends(resolve_principal)],
    service: Annotated[PostService, Depends(get_post_service)],
) -> Post:
    return service.publish_post(principal=principal, post_id=post_id)


@router.delete(
    "/{postId}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_OWNER_ONLY_RESPONSES,
)
async def delete_post(
    post_id: Annotated[str, Path(alias="postId")],
    principal: Annotated[AuthPrincipal | None, Depends(resolve_principal)],
    service: Annotated[PostService, Depends(get_post_service)],
) -> Response:
    service.delete_post(principal=principal, post_id=post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
