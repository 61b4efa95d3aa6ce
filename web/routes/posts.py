"""Post routes for UTM Connect web application."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Response, status

from utm_connect.repositories import User
from utm_connect.services import PostService
from web.dependencies import get_current_user, get_post_service
from web.models import CommentCreateRequest, PostCreateRequest, PostUpdateRequest

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreateRequest,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
) -> Dict[str, Any]:
    """Create a post authored by the caller."""
    post = await post_service.create_post(
        current_user.id, description=payload.description, photo_urls=payload.photo_urls
    )
    return post.to_dict()


@router.get("/{post_id}")
async def get_post(
    post_id: str, post_service: PostService = Depends(get_post_service)
) -> Dict[str, Any]:
    post = await post_service.get_post(post_id)
    return post.to_dict()


@router.post("/{post_id}/likes/{user_id}")
async def like_post(
    post_id: str,
    user_id: str,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
) -> Dict[str, Any]:
    post = await post_service.add_like(post_id, user_id, current_user.id)
    return post.to_dict()


@router.delete("/{post_id}/likes/{user_id}")
async def unlike_post(
    post_id: str,
    user_id: str,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
) -> Dict[str, Any]:
    post = await post_service.remove_like(post_id, user_id, current_user.id)
    return post.to_dict()


@router.post("/{post_id}/comments", status_code=status.HTTP_201_CREATED)
async def comment_on_post(
    post_id: str,
    payload: CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
) -> Dict[str, Any]:
    comment = await post_service.add_comment(post_id, current_user, payload.content)
    return comment.to_dict()


@router.put("/{post_id}")
async def update_post(
    post_id: str,
    payload: PostUpdateRequest,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
) -> Dict[str, Any]:
    post = await post_service.update_post(
        post_id,
        current_user.id,
        description=payload.description,
        photo_urls=payload.photo_urls,
    )
    return post.to_dict()


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
) -> Response:
    await post_service.delete_post(post_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
