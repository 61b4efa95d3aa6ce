"""Group management."""

from typing import List, Optional

from utm_connect.core.exceptions import NotFoundError
from utm_connect.repositories.group_repository import Group, GroupRepository


class GroupService:
    def __init__(self, groups: GroupRepository):
        self.groups = groups

    @staticmethod
    def _require(group: Optional[Group]) -> Group:
        if group is None:
            raise NotFoundError("Group not found")
        return group

    async def create_group(self, name: str, user_ids: Optional[List[str]] = None) -> Group:
        return await self.groups.create(name, user_ids)

    async def get_group(self, group_id: str) -> Group:
        return self._require(await self.groups.get_by_id(group_id))

    async def add_user(self, group_id: str, user_id: str) -> Group:
        return self._require(await self.groups.add_user(group_id, user_id))

    async def remove_user(self, group_id: str, user_id: str) -> Group:
        return self._require(await self.groups.remove_user(group_id, user_id))

    async def update_group(
        self, group_id: str, name: Optional[str] = None, user_ids: Optional[List[str]] = None
    ) -> Group:
        return self._require(await self.groups.update(group_id, name=name, user_ids=user_ids))

    async def delete_group(self, group_id: str) -> None:
        if not await self.groups.delete(group_id):
            raise NotFoundError("Group not found")
