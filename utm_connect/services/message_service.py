"""Direct messaging between two users."""

import math
from typing import Any, Dict, Optional

from loguru import logger

from utm_connect.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from utm_connect.repositories.conversation_repository import (
    Conversation,
    ConversationRepository,
    Message,
)
from utm_connect.repositories.user_repository import UserRepository

RECENT_MESSAGES_LIMIT = 20
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


class MessageService:
    """Conversations are keyed by the sorted pair of participant IDs."""

    def __init__(self, conversations: ConversationRepository, users: UserRepository):
        self.conversations = conversations
        self.users = users

    async def _other_user(self, conversation: Conversation, user_id: str) -> Optional[Dict[str, Any]]:
        other_id = conversation.other_participant(user_id)
        if other_id is None:
            return None
        other = await self.users.get_by_id(other_id)
        return other.to_summary() if other else None

    async def _participant_conversation(self, conversation_id: str, user_id: str) -> Conversation:
        conversation = await self.conversations.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        if user_id not in conversation.participant_ids:
            raise ForbiddenError("You are not a participant of this conversation")
        return conversation

    async def open_conversation(self, user_id: str, target_user_id: str) -> Dict[str, Any]:
        """
        Get or create the conversation with another user.

        Returns:
            Conversation with its latest messages (newest first) and the other user
        """
        if user_id == target_user_id:
            raise ValidationError("Cannot create conversation with yourself")
        target = await self.users.get_by_id(target_user_id)
        if target is None:
            raise NotFoundError("User not found")

        conversation = await self.conversations.get_or_create(user_id, target_user_id)
        messages = await self.conversations.latest_messages(
            conversation.id, limit=RECENT_MESSAGES_LIMIT
        )
        data = conversation.to_dict()
        data["messages"] = [message.to_dict() for message in messages]
        return {"conversation": data, "other_user": target.to_summary()}

    async def send_message(self, conversation_id: str, sender_id: str, text: str) -> Message:
        if not text.strip():
            raise ValidationError("Message text is required", field="text")
        await self._participant_conversation(conversation_id, sender_id)
        message = await self.conversations.add_message(conversation_id, sender_id, text)
        logger.debug(f"Message {message.id} sent in {conversation_id}")
        return message

    async def get_messages(
        self, conversation_id: str, user_id: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> Dict[str, Any]:
        """One page of the conversation in chronological order, with pagination info."""
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        conversation = await self._participant_conversation(conversation_id, user_id)

        messages = await self.conversations.get_messages(
            conversation_id, offset=(page - 1) * limit, limit=limit
        )
        total = await self.conversations.count_messages(conversation_id)
        return {
            "messages": [message.to_dict() for message in messages],
            "other_user": await self._other_user(conversation, user_id),
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "pages": math.ceil(total / limit),
            },
        }

    async def list_conversations(self, user_id: str) -> Dict[str, Any]:
        conversations = await self.conversations.get_for_user(user_id)
        items = []
        for conversation in conversations:
            item = conversation.to_dict()
            item["unread_count"] = conversation.unread_count
            item["other_user"] = await self._other_user(conversation, user_id)
            items.append(item)
        return {"conversations": items, "total": len(items)}

    async def mark_read(self, conversation_id: str, user_id: str) -> int:
        await self._participant_conversation(conversation_id, user_id)
        return await self.conversations.mark_read(conversation_id, user_id)
