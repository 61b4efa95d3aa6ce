"""Group routes for UTM Connect web application."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Response, status

from utm_connect.repositories import User
from utm_connect.services import GroupService
from web.dependencies import get_current_user, get_group_service
from web.models import GroupCreateRequest, GroupUpdateRequest

router = APIRouter(prefix="/api/groups", tags=["groups"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_group(
    payload: GroupCreateRequest,
    current_user: User = Depends(get_current_user),
    group_service: GroupService = Depends(get_group_service),
) -> Dict[str, Any]:
    group = await group_service.create_group(payload.name, payload.user_ids)
    return group.to_dict()


@router.get("/{group_id}")
async def get_group(
    group_id: str, group_service: GroupService = Depends(get_group_service)
) -> Dict[str, Any]:
    group = await group_service.get_group(group_id)
    return group.to_dict()


@router.post("/{group_id}/users/{user_id}")
async def add_user_to_group(
    group_id: str,
    user_id: str,
    current_user: User = Depends(get_current_user),
    group_service: GroupService = Depends(get_group_service),
) -> Dict[str, Any]:
    group = await group_service.add_user(group_id, user_id)
    return group.to_dict()


@router.delete("/{group_id}/users/{user_id}")
async def remove_user_from_group(
    group_id: str,
    user_id: str,
    current_user: User = Depends(get_current_user),
    group_service: GroupService = Depends(get_group_service),
) -> Dict[str, Any]:
    group = await group_service.remove_user(group_id, user_id)
    return group.to_dict()


@router.put("/{group_id}")
async def update_group(
    group_id: str,
    payload: GroupUpdateRequest,
    current_user: User = Depends(get_current_user),
    group_service: GroupService = Depends(get_group_service),
) -> Dict[str, Any]:
    group = await group_service.update_group(
        group_id, name=payload.name, user_ids=payload.user_ids
    )
    return group.to_dict()


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(
    group_id: str,
    current_user: User = Depends(get_current_user),
    group_service: GroupService = Depends(get_group_service),
) -> Response:
    await group_service.delete_group(group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
