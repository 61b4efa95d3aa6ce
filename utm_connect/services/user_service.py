"""User profile operations."""

import asyncio
from typing import Any, Dict, List, Optional

from loguru import logger

from utm_connect.core.auth import PasswordHasher, PasswordPolicy, validate_password_length
from utm_connect.core.exceptions import ConflictError, NotFoundError
from utm_connect.repositories.group_repository import GroupRepository
from utm_connect.repositories.post_repository import PostRepository
from utm_connect.repositories.user_repository import ROLE_STUDENT, User, UserRepository
from utm_connect.services.auth_service import normalize_email


class UserService:
    """Create and look up users, and assemble full profile views."""

    def __init__(
        self,
        users: UserRepository,
        groups: GroupRepository,
        posts: PostRepository,
        hasher: PasswordHasher,
        policy: PasswordPolicy,
    ):
        self.users = users
        self.groups = groups
        self.posts = posts
        self.hasher = hasher
        self.policy = policy

    async def create_user(
        self,
        email: str,
        name: str,
        password: str,
        phone_number: Optional[str] = None,
        university_group: Optional[str] = None,
        role: int = ROLE_STUDENT,
    ) -> User:
        """
        Create a user without opening a session.

        The password goes through the same policy and hashing as registration.

        Raises:
            ValidationError: Password violates the policy
            ConflictError: Email already registered
        """
        self.policy.enforce(password)
        validate_password_length(password)

        email = normalize_email(email)
        if await self.users.get_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        hashed = await asyncio.to_thread(self.hasher.hash, password)
        user = await self.users.create(
            {
                "email": email,
                "name": name,
                "password": hashed,
                "phone_number": phone_number,
                "university_group": university_group,
                "role": role,
            }
        )
        logger.info(f"User created via admin endpoint: {user.id}")
        return user

    async def get_user(self, user_id: str) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_users(self, limit: int = 100) -> List[User]:
        return await self.users.get_all(limit=limit)

    async def get_user_info(self, user_id: str) -> Dict[str, Any]:
        """
        Full profile of a user.

        Returns:
            Public user fields plus friend summaries, groups and posts
        """
        user = await self.get_user(user_id)
        friends, groups, posts = await asyncio.gather(
            self.users.get_many(user.friend_ids),
            self.groups.get_for_user(user.id),
            self.posts.get_by_user(user.id),
        )
        info = user.to_dict()
        info["friends"] = [friend.to_summary() for friend in friends]
        info["groups"] = [group.to_dict() for group in groups]
        info["posts"] = [post.to_dict() for post in posts]
        return info
