"""Refresh token repository implementation."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger

from utm_connect.models.database import Database
from utm_connect.repositories.base import isoformat


class RefreshToken:
    """Refresh token entity model. Holds a digest, never the raw token."""

    def __init__(
        self,
        id: str,
        token_hash: str,
        user_id: str,
        expires_at: datetime,
        is_revoked: bool = False,
        created_at: Optional[datetime] = None,
    ):
        """Initialize refresh token entity."""
        self.id = id
        self.token_hash = token_hash
        self.user_id = user_id
        self.expires_at = expires_at
        self.is_revoked = is_revoked
        self.created_at = created_at

    def to_dict(self) -> Dict[str, Any]:
        """Convert refresh token to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "expires_at": isoformat(self.expires_at),
            "is_revoked": self.is_revoked,
            "created_at": isoformat(self.created_at),
        }


class RefreshTokenRepository:
    """
    Repository for refresh token persistence and revocation.

    Rows are only ever addressed by owning user, never by their own ID.
    """

    def __init__(self, database: Database):
        """
        Initialize refresh token repository.

        Args:
            database: Database instance
        """
        self.db = database

    def _row_to_token(self, row: Any) -> RefreshToken:
        return RefreshToken(
            id=row["id"],
            token_hash=row["token_hash"],
            user_id=row["user_id"],
            expires_at=row["expires_at"],
            is_revoked=bool(row["is_revoked"]),
            created_at=row.get("created_at"),
        )

    async def create_row(self, token_hash: str, user_id: str, expires_at: datetime) -> str:
        """
        Insert a new, non-revoked refresh token row.

        Returns:
            ID of the created row
        """
        token_id = str(uuid.uuid4())
        async with self.db.get_connection() as conn:
            await conn.execute(
                """
                INSERT INTO refresh_tokens (id, token_hash, user_id, expires_at, is_revoked)
                VALUES ($1, $2, $3, $4, FALSE)
                """,
                token_id,
                token_hash,
                user_id,
                expires_at,
            )
        return token_id

    async def find_active(self, user_id: str) -> List[RefreshToken]:
        """Rows with is_revoked = FALSE and expires_at in the future."""
        async with self.db.get_connection() as conn:
            rows = await conn.fetch(
                """
                SELECT id, token_hash, user_id, expires_at, is_revoked, created_at
                FROM refresh_tokens
                WHERE user_id = $1 AND is_revoked = FALSE AND expires_at > NOW()
                ORDER BY created_at DESC
                """,
                user_id,
            )
            return [self._row_to_token(row) for row in rows]

    async def revoke_all_active(self, user_id: str) -> int:
        """
        Revoke every non-revoked token of a user.

        Returns:
            Number of rows revoked
        """
        async with self.db.get_connection() as conn:
            result = await conn.execute(
                """
                UPDATE refresh_tokens SET is_revoked = TRUE
                WHERE user_id = $1 AND is_revoked = FALSE
                """,
                user_id,
            )
            return Database._parse_command_tag(result)

    async def replace_active(self, user_id: str, token_hash: str, expires_at: datetime) -> str:
        """
        Revoke all active tokens and insert a new one in a single transaction.

        The owning user row is locked first, so concurrent logins for the same
        user run one after the other and leave exactly one active token.
        """
        token_id = str(uuid.uuid4())
        async with self.db.transaction() as conn:
            await conn.execute("SELECT id FROM users WHERE id = $1 FOR UPDATE", user_id)
            result = await conn.execute(
                """
                UPDATE refresh_tokens SET is_revoked = TRUE
                WHERE user_id = $1 AND is_revoked = FALSE
                """,
                user_id,
            )
            await conn.execute(
                """
                INSERT INTO refresh_tokens (id, token_hash, user_id, expires_at, is_revoked)
                VALUES ($1, $2, $3, $4, FALSE)
                """,
                token_id,
                token_hash,
                user_id,
                expires_at,
            )
        revoked = Database._parse_command_tag(result)
        logger.debug(f"Replaced {revoked} active refresh token(s) for {user_id}")
        return token_id
