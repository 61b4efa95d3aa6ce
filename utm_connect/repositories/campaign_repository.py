"""Campaign repository implementation."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from utm_connect.models.database import Database
from utm_connect.repositories.base import BaseRepository, isoformat

CAMPAIGN_COLUMNS = "id, name, description, user_id, created_at, updated_at"


class Campaign:
    """Campaign entity model."""

    def __init__(
        self,
        id: str,
        name: str,
        user_id: str,
        description: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.name = name
        self.user_id = user_id
        self.description = description
        self.created_at = created_at
        self.updated_at = updated_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "user_id": self.user_id,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class CampaignRepository(BaseRepository[Campaign]):
    """Repository for marketing campaigns."""

    def __init__(self, database: Database):
        super().__init__(database)

    def _row_to_campaign(self, row: Any) -> Campaign:
        return Campaign(
            id=row["id"],
            name=row["name"],
            user_id=row["user_id"],
            description=row.get("description"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    async def get_by_id(self, id: str) -> Optional[Campaign]:
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {CAMPAIGN_COLUMNS} FROM campaigns WHERE id = $1", id
            )
            return self._row_to_campaign(row) if row else None

    async def get_by_user(self, user_id: str) -> List[Campaign]:
        async with self.db.get_connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {CAMPAIGN_COLUMNS} FROM campaigns
                WHERE user_id = $1
                ORDER BY created_at DESC
                """,
                user_id,
            )
            return [self._row_to_campaign(row) for row in rows]

    async def create(self, name: str, user_id: str, description: Optional[str] = None) -> Campaign:
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO campaigns (id, name, description, user_id)
                VALUES ($1, $2, $3, $4)
                RETURNING {CAMPAIGN_COLUMNS}
                """,
                str(uuid.uuid4()),
                name,
                description,
                user_id,
            )
            return self._row_to_campaign(row)

    async def delete(self, id: str) -> bool:
        async with self.db.get_connection() as conn:
            result = await conn.execute("DELETE FROM campaigns WHERE id = $1", id)
            return self._affected(result) > 0
