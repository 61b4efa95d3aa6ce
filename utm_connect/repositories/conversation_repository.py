"""Direct message conversation repository implementation."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from utm_connect.models.database import Database
from utm_connect.repositories.base import BaseRepository, isoformat

CONVERSATION_COLUMNS = (
    "id, participant_ids, last_message, last_message_at, created_at, updated_at"
)
MESSAGE_COLUMNS = "id, conversation_id, sender_id, text, is_read, created_at"


class Message:
    """Message entity model."""

    def __init__(
        self,
        id: str,
        conversation_id: str,
        sender_id: str,
        text: str,
        is_read: bool = False,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.conversation_id = conversation_id
        self.sender_id = sender_id
        self.text = text
        self.is_read = is_read
        self.created_at = created_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "conversation_id": self.conversation_id,
            "sender_id": self.sender_id,
            "text": self.text,
            "is_read": self.is_read,
            "created_at": isoformat(self.created_at),
        }


class Conversation:
    """Conversation entity model. Participants are stored sorted."""

    def __init__(
        self,
        id: str,
        participant_ids: List[str],
        last_message: Optional[str] = None,
        last_message_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        unread_count: int = 0,
    ):
        self.id = id
        self.participant_ids = list(participant_ids)
        self.last_message = last_message
        self.last_message_at = last_message_at
        self.created_at = created_at
        self.updated_at = updated_at
        self.unread_count = unread_count

    def other_participant(self, user_id: str) -> Optional[str]:
        return next((pid for pid in self.participant_ids if pid != user_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "participant_ids": self.participant_ids,
            "last_message": self.last_message,
            "last_message_at": isoformat(self.last_message_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversations and their messages."""

    def __init__(self, database: Database):
        super().__init__(database)

    def _row_to_conversation(self, row: Any) -> Conversation:
        return Conversation(
            id=row["id"],
            participant_ids=row["participant_ids"],
            last_message=row.get("last_message"),
            last_message_at=row.get("last_message_at"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            unread_count=row.get("unread_count", 0) or 0,
        )

    def _row_to_message(self, row: Any) -> Message:
        return Message(
            id=row["id"],
            conversation_id=row["conversation_id"],
            sender_id=row["sender_id"],
            text=row["text"],
            is_read=bool(row.get("is_read", False)),
            created_at=row.get("created_at"),
        )

    async def get_by_id(self, id: str) -> Optional[Conversation]:
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {CONVERSATION_COLUMNS} FROM conversations WHERE id = $1", id
            )
            return self._row_to_conversation(row) if row else None

    async def get_or_create(self, user_a: str, user_b: str) -> Conversation:
        """
        Return the conversation between two users, creating it if needed.

        The unique index on the sorted participant pair makes concurrent
        creation safe: the loser of the race reads the winner's row.
        """
        participants = sorted([user_a, user_b])
        async with self.db.get_connection() as conn:
            await conn.execute(
                """
                INSERT INTO conversations (id, participant_ids)
                VALUES ($1, $2::text[])
                ON CONFLICT (participant_ids) DO NOTHING
                """,
                str(uuid.uuid4()),
                participants,
            )
            row = await conn.fetchrow(
                f"""
                SELECT {CONVERSATION_COLUMNS} FROM conversations
                WHERE participant_ids = $1::text[]
                """,
                participants,
            )
            return self._row_to_conversation(row)

    async def get_for_user(self, user_id: str) -> List[Conversation]:
        """All conversations of a user with their unread counts, most recent first."""
        async with self.db.get_connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {CONVERSATION_COLUMNS},
                       (SELECT COUNT(*) FROM messages m
                        WHERE m.conversation_id = c.id
                          AND m.sender_id <> $1
                          AND m.is_read = FALSE) AS unread_count
                FROM conversations c
                WHERE $1 = ANY(participant_ids)
                ORDER BY last_message_at DESC NULLS LAST, created_at DESC
                """,
                user_id,
            )
            return [self._row_to_conversation(row) for row in rows]

    async def latest_messages(self, conversation_id: str, limit: int = 20) -> List[Message]:
        """Most recent messages, newest first."""
        async with self.db.get_connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {MESSAGE_COLUMNS} FROM messages
                WHERE conversation_id = $1
                ORDER BY created_at DESC
                LIMIT $2
                """,
                conversation_id,
                limit,
            )
            return [self._row_to_message(row) for row in rows]

    async def get_messages(self, conversation_id: str, offset: int, limit: int) -> List[Message]:
        """A page of messages in chronological order."""
        async with self.db.get_connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {MESSAGE_COLUMNS} FROM messages
                WHERE conversation_id = $1
                ORDER BY created_at ASC
                OFFSET $2 LIMIT $3
                """,
                conversation_id,
                offset,
                limit,
            )
            return [self._row_to_message(row) for row in rows]

    async def count_messages(self, conversation_id: str) -> int:
        async with self.db.get_connection() as conn:
            total = await conn.fetchval(
                "SELECT COUNT(*) FROM messages WHERE conversation_id = $1", conversation_id
            )
            return int(total or 0)

    async def add_message(self, conversation_id: str, sender_id: str, text: str) -> Message:
        """Insert a message and update the conversation preview atomically."""
        async with self.db.transaction() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO messages (id, conversation_id, sender_id, text)
                VALUES ($1, $2, $3, $4)
                RETURNING {MESSAGE_COLUMNS}
                """,
                str(uuid.uuid4()),
                conversation_id,
                sender_id,
                text,
            )
            await conn.execute(
                """
                UPDATE conversations
                SET last_message = $2, last_message_at = $3, updated_at = NOW()
                WHERE id = $1
                """,
                conversation_id,
                text,
                row["created_at"],
            )
            return self._row_to_message(row)

    async def mark_read(self, conversation_id: str, reader_id: str) -> int:
        """
        Mark messages from the other participant as read.

        Returns:
            Number of messages updated
        """
        async with self.db.get_connection() as conn:
            result = await conn.execute(
                """
                UPDATE messages SET is_read = TRUE
                WHERE conversation_id = $1 AND sender_id <> $2 AND is_read = FALSE
                """,
                conversation_id,
                reader_id,
            )
            return self._affected(result)

    async def delete(self, id: str) -> bool:
        async with self.db.get_connection() as conn:
            result = await conn.execute("DELETE FROM conversations WHERE id = $1", id)
            return self._affected(result) > 0
