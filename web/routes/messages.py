"""Direct message routes for UTM Connect web application."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, status

from utm_connect.repositories import User
from utm_connect.services import MessageService
from utm_connect.services.message_service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from web.dependencies import get_current_user, get_message_service
from web.models import MessageCreateRequest

router = APIRouter(prefix="/api/messages", tags=["messages"])


# Static paths are registered before /{conversation_id}
@router.get("/conversations/list")
async def list_conversations(
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_message_service),
) -> Dict[str, Any]:
    """All conversations of the caller, newest activity first, with unread counts."""
    return await message_service.list_conversations(current_user.id)


@router.post("/conversation/{user_id}")
async def open_conversation(
    user_id: str,
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_message_service),
) -> Dict[str, Any]:
    return await message_service.open_conversation(current_user.id, user_id)


@router.post("/{conversation_id}", status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: str,
    payload: MessageCreateRequest,
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_message_service),
) -> Dict[str, Any]:
    message = await message_service.send_message(conversation_id, current_user.id, payload.text)
    return message.to_dict()


@router.get("/{conversation_id}")
async def get_messages(
    conversation_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_message_service),
) -> Dict[str, Any]:
    return await message_service.get_messages(
        conversation_id, current_user.id, page=page, limit=limit
    )


@router.put("/{conversation_id}/read")
async def mark_conversation_read(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_message_service),
) -> Dict[str, Any]:
    updated = await message_service.mark_read(conversation_id, current_user.id)
    return {"message": "Messages marked as read", "updated": updated}
