"""Group repository implementation."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from utm_connect.models.database import Database
from utm_connect.repositories.base import BaseRepository, isoformat

GROUP_COLUMNS = "id, name, user_ids, created_at, updated_at"


class Group:
    """Group entity model."""

    def __init__(
        self,
        id: str,
        name: str,
        user_ids: Optional[List[str]] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.name = name
        self.user_ids = list(user_ids or [])
        self.created_at = created_at
        self.updated_at = updated_at

    def to_dict(self) -> Dict[str, Any]:
        """Convert group to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "user_ids": self.user_ids,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class GroupRepository(BaseRepository[Group]):
    """Repository for groups and their membership lists."""

    def __init__(self, database: Database):
        super().__init__(database)

    def _row_to_group(self, row: Any) -> Group:
        return Group(
            id=row["id"],
            name=row["name"],
            user_ids=row.get("user_ids"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    async def get_by_id(self, id: str) -> Optional[Group]:
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(f"SELECT {GROUP_COLUMNS} FROM groups WHERE id = $1", id)
            return self._row_to_group(row) if row else None

    async def get_for_user(self, user_id: str) -> List[Group]:
        """Groups the user is a member of."""
        async with self.db.get_connection() as conn:
            rows = await conn.fetch(
                f"SELECT {GROUP_COLUMNS} FROM groups WHERE $1 = ANY(user_ids) ORDER BY name",
                user_id,
            )
            return [self._row_to_group(row) for row in rows]

    async def create(self, name: str, user_ids: Optional[List[str]] = None) -> Group:
        # Deduplicate while keeping order
        members = list(dict.fromkeys(user_ids or []))
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO groups (id, name, user_ids)
                VALUES ($1, $2, $3::text[])
                RETURNING {GROUP_COLUMNS}
                """,
                str(uuid.uuid4()),
                name,
                members,
            )
            return self._row_to_group(row)

    async def update(
        self, id: str, name: Optional[str] = None, user_ids: Optional[List[str]] = None
    ) -> Optional[Group]:
        """Update name and/or member list; omitted values are left unchanged."""
        members = list(dict.fromkeys(user_ids)) if user_ids is not None else None
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE groups
                SET name = COALESCE($2, name),
                    user_ids = COALESCE($3::text[], user_ids),
                    updated_at = NOW()
                WHERE id = $1
                RETURNING {GROUP_COLUMNS}
                """,
                id,
                name,
                members,
            )
            return self._row_to_group(row) if row else None

    async def add_user(self, id: str, user_id: str) -> Optional[Group]:
        """Add a member; a no-op if already present."""
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE groups
                SET user_ids = CASE WHEN $2 = ANY(user_ids) THEN user_ids
                                    ELSE array_append(user_ids, $2) END,
                    updated_at = NOW()
                WHERE id = $1
                RETURNING {GROUP_COLUMNS}
                """,
                id,
                user_id,
            )
            return self._row_to_group(row) if row else None

    async def remove_user(self, id: str, user_id: str) -> Optional[Group]:
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE groups
                SET user_ids = array_remove(user_ids, $2), updated_at = NOW()
                WHERE id = $1
                RETURNING {GROUP_COLUMNS}
                """,
                id,
                user_id,
            )
            return self._row_to_group(row) if row else None

    async def delete(self, id: str) -> bool:
        async with self.db.get_connection() as conn:
            result = await conn.execute("DELETE FROM groups WHERE id = $1", id)
            return self._affected(result) > 0
