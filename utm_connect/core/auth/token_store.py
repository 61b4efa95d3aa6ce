"""Refresh token bookkeeping.

Only a SHA-256 digest of each refresh token is persisted. bcrypt is not used
here: signed tokens are far longer than bcrypt's 72-byte input limit, so
tokens sharing a header and subject would hash identically.
"""

import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Protocol

from loguru import logger


def hash_token(raw_token: str) -> str:
    """One-way digest of a raw refresh token."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


class RefreshTokenRecord(Protocol):
    """Shape of a persisted refresh token row."""

    id: str
    token_hash: str
    user_id: str
    expires_at: datetime
    is_revoked: bool


class RefreshTokenBackend(Protocol):
    """Persistence contract for refresh tokens."""

    async def create_row(self, token_hash: str, user_id: str, expires_at: datetime) -> str: ...

    async def find_active(self, user_id: str) -> List[RefreshTokenRecord]: ...

    async def revoke_all_active(self, user_id: str) -> int: ...

    async def replace_active(self, user_id: str, token_hash: str, expires_at: datetime) -> str: ...


class RefreshTokenStore:
    """Persist, revoke and look up hashed refresh tokens."""

    def __init__(self, backend: RefreshTokenBackend):
        self.backend = backend

    async def persist(self, user_id: str, raw_token: str, ttl: timedelta) -> str:
        """
        Store the hash of a freshly issued refresh token.

        Args:
            user_id: Owner of the token
            raw_token: Token as handed to the client (never stored)
            ttl: Lifetime; expiry is computed from now

        Returns:
            ID of the new row
        """
        expires_at = datetime.now(timezone.utc) + ttl
        row_id = await self.backend.create_row(hash_token(raw_token), user_id, expires_at)
        logger.debug(f"Refresh token persisted for user {user_id}")
        return row_id

    async def rotate(self, user_id: str, raw_token: str, ttl: timedelta) -> str:
        """Revoke every active token for the user and store the new one atomically."""
        expires_at = datetime.now(timezone.utc) + ttl
        row_id = await self.backend.replace_active(user_id, hash_token(raw_token), expires_at)
        logger.debug(f"Refresh tokens replaced for user {user_id}")
        return row_id

    async def revoke_all_active(self, user_id: str) -> int:
        """Mark every non-revoked token of the user as revoked. Idempotent."""
        count = await self.backend.revoke_all_active(user_id)
        logger.debug(f"Revoked {count} refresh token(s) for user {user_id}")
        return count

    async def find_active(self, user_id: str) -> List[RefreshTokenRecord]:
        """Rows that are neither revoked nor expired."""
        return await self.backend.find_active(user_id)

    async def find_matching(self, user_id: str, raw_token: str) -> Optional[RefreshTokenRecord]:
        """
        Find the active row whose hash matches ``raw_token``.

        Scans every active row, so stray duplicates left by concurrent
        logins do not break lookups.
        """
        digest = hash_token(raw_token)
        now = datetime.now(timezone.utc)
        for record in await self.find_active(user_id):
            if record.is_revoked or record.expires_at <= now:
                continue
            if hmac.compare_digest(record.token_hash, digest):
                return record
        return None
