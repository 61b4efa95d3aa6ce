"""Friend requests and friendships."""

import asyncio
from typing import Tuple

from loguru import logger

from utm_connect.core.exceptions import NotFoundError, ValidationError
from utm_connect.repositories.user_repository import User, UserRepository


class FriendService:
    """Send, accept and remove friendships between users."""

    def __init__(self, users: UserRepository):
        self.users = users

    async def _load_pair(self, user_id: str, other_id: str) -> Tuple[User, User]:
        me, other = await asyncio.gather(
            self.users.get_by_id(user_id), self.users.get_by_id(other_id)
        )
        if me is None or other is None:
            raise NotFoundError("User not found")
        return me, other

    async def send_request(self, user_id: str, target_id: str) -> None:
        """
        Send a friend request from ``user_id`` to ``target_id``.

        Raises:
            ValidationError: Self request, already friends, or already requested
            NotFoundError: Either user is missing
        """
        if user_id == target_id:
            raise ValidationError("Cannot send friend request to yourself")

        me, _ = await self._load_pair(user_id, target_id)
        if target_id in me.friend_ids:
            raise ValidationError("Already friends")
        if target_id in me.friend_requests_sent:
            raise ValidationError("Friend request already sent")

        await self.users.add_friend_request(user_id, target_id)
        logger.info(f"Friend request {user_id} -> {target_id}")

    async def accept_request(self, user_id: str, requester_id: str) -> None:
        """
        Accept a pending request that ``requester_id`` sent to ``user_id``.

        Raises:
            ValidationError: No such pending request, or already friends
            NotFoundError: Either user is missing
        """
        me, _ = await self._load_pair(user_id, requester_id)
        if requester_id not in me.friend_requests_received:
            raise ValidationError("Friend request not found")
        if requester_id in me.friend_ids:
            raise ValidationError("Already friends")

        await self.users.accept_friend_request(user_id, requester_id)
        logger.info(f"Friend request accepted {requester_id} -> {user_id}")

    async def remove_friend(self, user_id: str, friend_id: str) -> None:
        """
        End a friendship on both sides.

        Raises:
            ValidationError: Removing yourself, or not friends
            NotFoundError: Either user is missing
        """
        if user_id == friend_id:
            raise ValidationError("Cannot remove yourself")

        me, _ = await self._load_pair(user_id, friend_id)
        if friend_id not in me.friend_ids:
            raise ValidationError("Not friends")

        await self.users.remove_friend(user_id, friend_id)
        logger.info(f"Friendship removed {user_id} <-> {friend_id}")
