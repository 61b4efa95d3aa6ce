"""Short link and click analytics repository implementation."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import asyncpg

from utm_connect.core.exceptions import ConflictError
from utm_connect.models.database import Database
from utm_connect.repositories.base import BaseRepository, isoformat

LINK_COLUMNS = "id, original_url, short_code, campaign_id, user_id, clicks, created_at, updated_at"


class Link:
    """Short link entity model."""

    def __init__(
        self,
        id: str,
        original_url: str,
        short_code: str,
        user_id: str,
        campaign_id: Optional[str] = None,
        clicks: int = 0,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.original_url = original_url
        self.short_code = short_code
        self.user_id = user_id
        self.campaign_id = campaign_id
        self.clicks = clicks
        self.created_at = created_at
        self.updated_at = updated_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "original_url": self.original_url,
            "short_code": self.short_code,
            "campaign_id": self.campaign_id,
            "user_id": self.user_id,
            "clicks": self.clicks,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class LinkAnalytic:
    """A single recorded click."""

    def __init__(
        self,
        id: str,
        link_id: str,
        user_agent: Optional[str] = None,
        referer: Optional[str] = None,
        ip_address: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.link_id = link_id
        self.user_agent = user_agent
        self.referer = referer
        self.ip_address = ip_address
        self.created_at = created_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "link_id": self.link_id,
            "user_agent": self.user_agent,
            "referer": self.referer,
            "ip_address": self.ip_address,
            "created_at": isoformat(self.created_at),
        }


class LinkRepository(BaseRepository[Link]):
    """Repository for short links and their click log."""

    def __init__(self, database: Database):
        super().__init__(database)

    def _row_to_link(self, row: Any) -> Link:
        return Link(
            id=row["id"],
            original_url=row["original_url"],
            short_code=row["short_code"],
            user_id=row["user_id"],
            campaign_id=row.get("campaign_id"),
            clicks=row.get("clicks", 0),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    async def get_by_id(self, id: str) -> Optional[Link]:
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(f"SELECT {LINK_COLUMNS} FROM links WHERE id = $1", id)
            return self._row_to_link(row) if row else None

    async def get_by_short_code(self, short_code: str) -> Optional[Link]:
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {LINK_COLUMNS} FROM links WHERE short_code = $1", short_code
            )
            return self._row_to_link(row) if row else None

    async def get_by_user(self, user_id: str) -> List[Link]:
        async with self.db.get_connection() as conn:
            rows = await conn.fetch(
                f"SELECT {LINK_COLUMNS} FROM links WHERE user_id = $1 ORDER BY created_at DESC",
                user_id,
            )
            return [self._row_to_link(row) for row in rows]

    async def get_by_campaign(self, campaign_id: str) -> List[Link]:
        async with self.db.get_connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {LINK_COLUMNS} FROM links
                WHERE campaign_id = $1
                ORDER BY created_at DESC
                """,
                campaign_id,
            )
            return [self._row_to_link(row) for row in rows]

    async def create(
        self,
        original_url: str,
        short_code: str,
        user_id: str,
        campaign_id: Optional[str] = None,
    ) -> Link:
        """
        Create a short link.

        Raises:
            ConflictError: If the short code is taken
        """
        try:
            async with self.db.get_connection() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO links (id, original_url, short_code, campaign_id, user_id)
                    VALUES ($1, $2, $3, $4, $5)
                    RETURNING {LINK_COLUMNS}
                    """,
                    str(uuid.uuid4()),
                    original_url,
                    short_code,
                    campaign_id,
                    user_id,
                )
        except asyncpg.UniqueViolationError:
            raise ConflictError("Short code already exists")
        return self._row_to_link(row)

    async def record_click(
        self,
        link_id: str,
        user_agent: Optional[str] = None,
        referer: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Optional[Link]:
        """Log a click and bump the counter in one transaction."""
        async with self.db.transaction() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE links SET clicks = clicks + 1, updated_at = NOW()
                WHERE id = $1
                RETURNING {LINK_COLUMNS}
                """,
                link_id,
            )
            if not row:
                return None
            await conn.execute(
                """
                INSERT INTO link_analytics (id, link_id, user_agent, referer, ip_address)
                VALUES ($1, $2, $3, $4, $5)
                """,
                str(uuid.uuid4()),
                link_id,
                user_agent,
                referer,
                ip_address,
            )
            return self._row_to_link(row)

    async def get_analytics(self, link_id: str, limit: int = 100) -> List[LinkAnalytic]:
        async with self.db.get_connection() as conn:
            rows = await conn.fetch(
                """
                SELECT id, link_id, user_agent, referer, ip_address, created_at
                FROM link_analytics
                WHERE link_id = $1
                ORDER BY created_at DESC
                LIMIT $2
                """,
                link_id,
                limit,
            )
            return [
                LinkAnalytic(
                    id=row["id"],
                    link_id=row["link_id"],
                    user_agent=row.get("user_agent"),
                    referer=row.get("referer"),
                    ip_address=row.get("ip_address"),
                    created_at=row.get("created_at"),
                )
                for row in rows
            ]

    async def delete(self, id: str) -> bool:
        async with self.db.get_connection() as conn:
            result = await conn.execute("DELETE FROM links WHERE id = $1", id)
            return self._affected(result) > 0
