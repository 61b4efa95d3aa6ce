"""Friendship routes for UTM Connect web application."""

from fastapi import APIRouter, Depends

from utm_connect.repositories import User
from utm_connect.services import FriendService
from web.dependencies import get_current_user, get_friend_service
from web.models import FriendRequest, MessageResponse

router = APIRouter(prefix="/api/friends", tags=["friends"])


@router.post("/request", response_model=MessageResponse)
async def send_friend_request(
    payload: FriendRequest,
    current_user: User = Depends(get_current_user),
    friend_service: FriendService = Depends(get_friend_service),
) -> MessageResponse:
    await friend_service.send_request(current_user.id, payload.target_id)
    return MessageResponse(message="Friend request sent")


@router.post("/accept", response_model=MessageResponse)
async def accept_friend_request(
    payload: FriendRequest,
    current_user: User = Depends(get_current_user),
    friend_service: FriendService = Depends(get_friend_service),
) -> MessageResponse:
    """Accept the pending request sent by ``target_id``."""
    await friend_service.accept_request(current_user.id, payload.target_id)
    return MessageResponse(message="Friend request accepted")


@router.post("/remove", response_model=MessageResponse)
async def remove_friend(
    payload: FriendRequest,
    current_user: User = Depends(get_current_user),
    friend_service: FriendService = Depends(get_friend_service),
) -> MessageResponse:
    await friend_service.remove_friend(current_user.id, payload.target_id)
    return MessageResponse(message="Friend removed")
