"""Posts, likes and comments."""

from typing import List, Optional

from loguru import logger

from utm_connect.core.exceptions import ForbiddenError, NotFoundError
from utm_connect.repositories.post_repository import Comment, Post, PostRepository
from utm_connect.repositories.user_repository import User


class PostService:
    """Post lifecycle with author-only edits and per-user likes."""

    def __init__(self, posts: PostRepository):
        self.posts = posts

    @staticmethod
    def _require(post: Optional[Post]) -> Post:
        if post is None:
            raise NotFoundError("Post not found")
        return post

    async def _owned(self, post_id: str, user_id: str) -> Post:
        post = self._require(await self.posts.get_by_id(post_id))
        if post.user_id != user_id:
            raise ForbiddenError("Only the author can modify this post")
        return post

    async def create_post(
        self, user_id: str, description: Optional[str] = None, photo_urls: Optional[List[str]] = None
    ) -> Post:
        post = await self.posts.create(user_id, description=description, photo_urls=photo_urls)
        logger.info(f"Post {post.id} created by {user_id}")
        return post

    async def get_post(self, post_id: str) -> Post:
        return self._require(await self.posts.get_by_id(post_id))

    async def add_like(self, post_id: str, user_id: str, acting_user_id: str) -> Post:
        """Like a post. Users can only like on their own behalf."""
        if user_id != acting_user_id:
            raise ForbiddenError("Cannot like on behalf of another user")
        return self._require(await self.posts.add_like(post_id, user_id))

    async def remove_like(self, post_id: str, user_id: str, acting_user_id: str) -> Post:
        if user_id != acting_user_id:
            raise ForbiddenError("Cannot unlike on behalf of another user")
        return self._require(await self.posts.remove_like(post_id, user_id))

    async def add_comment(self, post_id: str, author: User, content: str) -> Comment:
        """Comment as ``author``; the displayed name is taken from the profile."""
        self._require(await self.posts.get_by_id(post_id))
        return await self.posts.add_comment(post_id, author.id, author.name, content)

    async def update_post(
        self,
        post_id: str,
        acting_user_id: str,
        description: Optional[str] = None,
        photo_urls: Optional[List[str]] = None,
    ) -> Post:
        await self._owned(post_id, acting_user_id)
        return self._require(
            await self.posts.update(post_id, description=description, photo_urls=photo_urls)
        )

    async def delete_post(self, post_id: str, acting_user_id: str) -> None:
        await self._owned(post_id, acting_user_id)
        await self.posts.delete(post_id)
        logger.info(f"Post {post_id} deleted by {acting_user_id}")
