"""User repository implementation."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import asyncpg
from loguru import logger

from utm_connect.core.exceptions import ConflictError, ValidationError
from utm_connect.models.database import Database
from utm_connect.repositories.base import BaseRepository, isoformat

ROLE_STUDENT = 0
ROLE_PROFESSOR = 1
ROLE_ADMIN = 2

# Columns callers may update. The password hash is written only on create.
ALLOWED_USER_UPDATE_FIELDS = frozenset(
    {
        "email",
        "name",
        "phone_number",
        "university_group",
        "role",
        "photo_urls",
        "primary_photo_url",
    }
)

USER_COLUMNS = """
    id, email, name, password, phone_number, university_group, role,
    friend_ids, friend_requests_sent, friend_requests_received,
    photo_urls, primary_photo_url, joined_at, created_at, updated_at
"""


class User:
    """User entity model."""

    def __init__(
        self,
        id: str,
        email: str,
        name: str,
        password: str,
        phone_number: Optional[str] = None,
        university_group: Optional[str] = None,
        role: int = ROLE_STUDENT,
        friend_ids: Optional[List[str]] = None,
        friend_requests_sent: Optional[List[str]] = None,
        friend_requests_received: Optional[List[str]] = None,
        photo_urls: Optional[List[str]] = None,
        primary_photo_url: Optional[str] = None,
        joined_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        """Initialize user entity."""
        self.id = id
        self.email = email
        self.name = name
        self.password = password
        self.phone_number = phone_number
        self.university_group = university_group
        self.role = role
        self.friend_ids = list(friend_ids or [])
        self.friend_requests_sent = list(friend_requests_sent or [])
        self.friend_requests_received = list(friend_requests_received or [])
        self.photo_urls = list(photo_urls or [])
        self.primary_photo_url = primary_photo_url
        self.joined_at = joined_at
        self.created_at = created_at
        self.updated_at = updated_at

    def to_dict(self, include_password: bool = False) -> Dict[str, Any]:
        """Convert user to dictionary. The password hash is left out unless asked for."""
        data = {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "phone_number": self.phone_number,
            "university_group": self.university_group,
            "role": self.role,
            "friend_ids": self.friend_ids,
            "friend_requests_sent": self.friend_requests_sent,
            "friend_requests_received": self.friend_requests_received,
            "photo_urls": self.photo_urls,
            "primary_photo_url": self.primary_photo_url,
            "joined_at": isoformat(self.joined_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_password:
            data["password"] = self.password
        return data

    def to_summary(self) -> Dict[str, Any]:
        """Compact public view used when embedding users in other resources."""
        return {"id": self.id, "name": self.name, "photo_url": self.primary_photo_url}


class UserRepository(BaseRepository[User]):
    """Repository for user CRUD and friendship bookkeeping."""

    def __init__(self, database: Database):
        """
        Initialize user repository.

        Args:
            database: Database instance
        """
        super().__init__(database)

    def _row_to_user(self, row: Any) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            password=row["password"],
            phone_number=row.get("phone_number"),
            university_group=row.get("university_group"),
            role=row.get("role", ROLE_STUDENT),
            friend_ids=row.get("friend_ids"),
            friend_requests_sent=row.get("friend_requests_sent"),
            friend_requests_received=row.get("friend_requests_received"),
            photo_urls=row.get("photo_urls"),
            primary_photo_url=row.get("primary_photo_url"),
            joined_at=row.get("joined_at"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    async def get_by_id(self, id: str) -> Optional[User]:
        """
        Get user by ID.

        Args:
            id: User ID

        Returns:
            User entity or None if not found
        """
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(f"SELECT {USER_COLUMNS} FROM users WHERE id = $1", id)
            return self._row_to_user(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {USER_COLUMNS} FROM users WHERE lower(email) = lower($1)", email
            )
            return self._row_to_user(row) if row else None

    async def get_all(self, limit: int = 100) -> List[User]:
        async with self.db.get_connection() as conn:
            rows = await conn.fetch(
                f"SELECT {USER_COLUMNS} FROM users ORDER BY created_at DESC LIMIT $1", limit
            )
            return [self._row_to_user(row) for row in rows]

    async def get_many(self, ids: List[str]) -> List[User]:
        """Fetch several users at once; unknown IDs are skipped."""
        if not ids:
            return []
        async with self.db.get_connection() as conn:
            rows = await conn.fetch(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = ANY($1::text[]) ORDER BY name",
                list(ids),
            )
            return [self._row_to_user(row) for row in rows]

    async def create(self, data: Dict[str, Any]) -> User:
        """
        Create new user.

        Args:
            data: User data; ``password`` must already be hashed

        Returns:
            Created user

        Raises:
            ValidationError: If required fields are missing
            ConflictError: If the email is already registered
        """
        for field in ("email", "name", "password"):
            if not data.get(field):
                raise ValidationError(f"{field} is required", field=field)

        user_id = data.get("id") or str(uuid.uuid4())
        try:
            async with self.db.get_connection() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO users (id, email, name, password, phone_number,
                                       university_group, role)
                    VALUES ($1, $2, $3, $4, $5, $6, $7)
                    RETURNING {USER_COLUMNS}
                    """,
                    user_id,
                    data["email"],
                    data["name"],
                    data["password"],
                    data.get("phone_number"),
                    data.get("university_group"),
                    data.get("role", ROLE_STUDENT),
                )
        except asyncpg.UniqueViolationError:
            raise ConflictError("email already registered")

        logger.info(f"User created: {user_id}")
        return self._row_to_user(row)

    async def update(self, id: str, data: Dict[str, Any]) -> Optional[User]:
        """
        Update whitelisted user columns.

        Returns:
            Updated user or None if not found

        Raises:
            ValidationError: If a field is not updatable
        """
        invalid = set(data) - ALLOWED_USER_UPDATE_FIELDS
        if invalid:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(invalid))}")
        if not data:
            return await self.get_by_id(id)

        assignments = ", ".join(f"{column} = ${i}" for i, column in enumerate(data, start=2))
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE users SET {assignments}, updated_at = NOW()
                WHERE id = $1
                RETURNING {USER_COLUMNS}
                """,
                id,
                *data.values(),
            )
            return self._row_to_user(row) if row else None

    async def delete(self, id: str) -> bool:
        async with self.db.get_connection() as conn:
            result = await conn.execute("DELETE FROM users WHERE id = $1", id)
            return self._affected(result) > 0

    async def add_friend_request(self, requester_id: str, target_id: str) -> None:
        """Record a pending request on both sides."""
        async with self.db.transaction() as conn:
            await conn.execute(
                """
                UPDATE users
                SET friend_requests_sent = array_append(friend_requests_sent, $2),
                    updated_at = NOW()
                WHERE id = $1 AND NOT ($2 = ANY(friend_requests_sent))
                """,
                requester_id,
                target_id,
            )
            await conn.execute(
                """
                UPDATE users
                SET friend_requests_received = array_append(friend_requests_received, $2),
                    updated_at = NOW()
                WHERE id = $1 AND NOT ($2 = ANY(friend_requests_received))
                """,
                target_id,
                requester_id,
            )

    async def accept_friend_request(self, user_id: str, requester_id: str) -> None:
        """Clear the pending request and link both users as friends."""
        async with self.db.transaction() as conn:
            await conn.execute(
                """
                UPDATE users
                SET friend_requests_received = array_remove(friend_requests_received, $2),
                    friend_ids = CASE WHEN $2 = ANY(friend_ids) THEN friend_ids
                                      ELSE array_append(friend_ids, $2) END,
                    updated_at = NOW()
                WHERE id = $1
                """,
                user_id,
                requester_id,
            )
            await conn.execute(
                """
                UPDATE users
                SET friend_requests_sent = array_remove(friend_requests_sent, $2),
                    friend_ids = CASE WHEN $2 = ANY(friend_ids) THEN friend_ids
                                      ELSE array_append(friend_ids, $2) END,
                    updated_at = NOW()
                WHERE id = $1
                """,
                requester_id,
                user_id,
            )

    async def remove_friend(self, user_id: str, friend_id: str) -> None:
        """Unlink two users on both sides."""
        async with self.db.transaction() as conn:
            for owner, other in ((user_id, friend_id), (friend_id, user_id)):
                await conn.execute(
                    """
                    UPDATE users
                    SET friend_ids = array_remove(friend_ids, $2), updated_at = NOW()
                    WHERE id = $1
                    """,
                    owner,
                    other,
                )

    async def add_photo(self, user_id: str, url: str, make_primary: bool = False) -> Optional[User]:
        """Append a photo URL to the user's gallery, optionally making it the avatar."""
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE users
                SET photo_urls = array_append(photo_urls, $2),
                    primary_photo_url = CASE WHEN $3 THEN $2 ELSE primary_photo_url END,
                    updated_at = NOW()
                WHERE id = $1
                RETURNING {USER_COLUMNS}
                """,
                user_id,
                url,
                make_primary,
            )
            return self._row_to_user(row) if row else None
