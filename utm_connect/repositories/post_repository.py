"""Post and comment repository implementation."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from utm_connect.models.database import Database
from utm_connect.repositories.base import BaseRepository, isoformat

POST_COLUMNS = "id, user_id, description, photo_urls, likes, created_at, updated_at"
COMMENT_COLUMNS = "id, post_id, user_id, user_name, content, created_at"


class Comment:
    """Comment entity model."""

    def __init__(
        self,
        id: str,
        post_id: str,
        user_id: str,
        user_name: str,
        content: str,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.post_id = post_id
        self.user_id = user_id
        self.user_name = user_name
        self.content = content
        self.created_at = created_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "post_id": self.post_id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "content": self.content,
            "created_at": isoformat(self.created_at),
        }


class Post:
    """Post entity model."""

    def __init__(
        self,
        id: str,
        user_id: str,
        description: Optional[str] = None,
        photo_urls: Optional[List[str]] = None,
        likes: Optional[List[str]] = None,
        comments: Optional[List[Comment]] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.user_id = user_id
        self.description = description
        self.photo_urls = list(photo_urls or [])
        self.likes = list(likes or [])
        self.comments = list(comments or [])
        self.created_at = created_at
        self.updated_at = updated_at

    def to_dict(self) -> Dict[str, Any]:
        """Convert post, with its comments, to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "description": self.description,
            "photo_urls": self.photo_urls,
            "likes": self.likes,
            "comments": [comment.to_dict() for comment in self.comments],
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class PostRepository(BaseRepository[Post]):
    """Repository for posts, likes and comments."""

    def __init__(self, database: Database):
        super().__init__(database)

    def _row_to_post(self, row: Any, comments: Optional[List[Comment]] = None) -> Post:
        return Post(
            id=row["id"],
            user_id=row["user_id"],
            description=row.get("description"),
            photo_urls=row.get("photo_urls"),
            likes=row.get("likes"),
            comments=comments,
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def _row_to_comment(self, row: Any) -> Comment:
        return Comment(
            id=row["id"],
            post_id=row["post_id"],
            user_id=row["user_id"],
            user_name=row["user_name"],
            content=row["content"],
            created_at=row.get("created_at"),
        )

    async def _load_comments(self, conn: Any, post_ids: List[str]) -> Dict[str, List[Comment]]:
        by_post: Dict[str, List[Comment]] = {post_id: [] for post_id in post_ids}
        if not post_ids:
            return by_post
        rows = await conn.fetch(
            f"""
            SELECT {COMMENT_COLUMNS} FROM post_comments
            WHERE post_id = ANY($1::text[])
            ORDER BY created_at
            """,
            post_ids,
        )
        for row in rows:
            by_post.setdefault(row["post_id"], []).append(self._row_to_comment(row))
        return by_post

    async def get_by_id(self, id: str) -> Optional[Post]:
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(f"SELECT {POST_COLUMNS} FROM posts WHERE id = $1", id)
            if not row:
                return None
            comments = await self._load_comments(conn, [id])
            return self._row_to_post(row, comments[id])

    async def get_by_user(self, user_id: str, limit: int = 100) -> List[Post]:
        """Posts authored by the user, newest first."""
        async with self.db.get_connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {POST_COLUMNS} FROM posts
                WHERE user_id = $1
                ORDER BY created_at DESC
                LIMIT $2
                """,
                user_id,
                limit,
            )
            comments = await self._load_comments(conn, [row["id"] for row in rows])
            return [self._row_to_post(row, comments.get(row["id"])) for row in rows]

    async def create(
        self, user_id: str, description: Optional[str] = None, photo_urls: Optional[List[str]] = None
    ) -> Post:
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO posts (id, user_id, description, photo_urls)
                VALUES ($1, $2, $3, $4::text[])
                RETURNING {POST_COLUMNS}
                """,
                str(uuid.uuid4()),
                user_id,
                description,
                list(photo_urls or []),
            )
            return self._row_to_post(row)

    async def update(
        self, id: str, description: Optional[str] = None, photo_urls: Optional[List[str]] = None
    ) -> Optional[Post]:
        """Update description and/or photos; omitted values are left unchanged."""
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE posts
                SET description = COALESCE($2, description),
                    photo_urls = COALESCE($3::text[], photo_urls),
                    updated_at = NOW()
                WHERE id = $1
                RETURNING id
                """,
                id,
                description,
                photo_urls,
            )
        return await self.get_by_id(id) if row else None

    async def add_like(self, id: str, user_id: str) -> Optional[Post]:
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                """
                UPDATE posts
                SET likes = CASE WHEN $2 = ANY(likes) THEN likes
                                 ELSE array_append(likes, $2) END,
                    updated_at = NOW()
                WHERE id = $1
                RETURNING id
                """,
                id,
                user_id,
            )
        return await self.get_by_id(id) if row else None

    async def remove_like(self, id: str, user_id: str) -> Optional[Post]:
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                """
                UPDATE posts SET likes = array_remove(likes, $2), updated_at = NOW()
                WHERE id = $1
                RETURNING id
                """,
                id,
                user_id,
            )
        return await self.get_by_id(id) if row else None

    async def add_comment(self, post_id: str, user_id: str, user_name: str, content: str) -> Comment:
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO post_comments (id, post_id, user_id, user_name, content)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING {COMMENT_COLUMNS}
                """,
                str(uuid.uuid4()),
                post_id,
                user_id,
                user_name,
                content,
            )
            return self._row_to_comment(row)

    async def add_photo(self, id: str, url: str) -> Optional[Post]:
        async with self.db.get_connection() as conn:
            row = await conn.fetchrow(
                """
                UPDATE posts SET photo_urls = array_append(photo_urls, $2), updated_at = NOW()
                WHERE id = $1
                RETURNING id
                """,
                id,
                url,
            )
        return await self.get_by_id(id) if row else None

    async def remove_photo_everywhere(self, user_id: str, url: str) -> int:
        """Drop a photo URL from every post the user authored."""
        async with self.db.get_connection() as conn:
            result = await conn.execute(
                """
                UPDATE posts SET photo_urls = array_remove(photo_urls, $2), updated_at = NOW()
                WHERE user_id = $1 AND $2 = ANY(photo_urls)
                """,
                user_id,
                url,
            )
            return self._affected(result)

    async def delete(self, id: str) -> bool:
        async with self.db.get_connection() as conn:
            result = await conn.execute("DELETE FROM posts WHERE id = $1", id)
            return self._affected(result) > 0
