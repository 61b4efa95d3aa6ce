"""User routes for UTM Connect web application."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query, status

from utm_connect.repositories import User
from utm_connect.services import UserService
from web.dependencies import get_current_user, get_user_service
from web.models import UserCreateRequest, UserModel

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=UserModel, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreateRequest, user_service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    """
    Create a user without opening a session.

    The password is checked against the policy and stored hashed.
    """
    user = await user_service.create_user(
        email=payload.email,
        name=payload.name,
        password=payload.password,
        phone_number=payload.phone_number,
        university_group=payload.university_group,
        role=payload.role,
    )
    return user.to_dict()


@router.get("", response_model=List[UserModel])
async def get_users(
    limit: int = Query(100, ge=1, le=500),
    user_service: UserService = Depends(get_user_service),
) -> List[Dict[str, Any]]:
    users = await user_service.list_users(limit=limit)
    return [user.to_dict() for user in users]


# Must be registered before /{user_id}
@router.get("/me/info")
async def get_my_info(
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    return await user_service.get_user_info(current_user.id)


@router.get("/info/{user_id}")
async def get_user_info(
    user_id: str, user_service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    """User profile with friends, groups and posts."""
    return await user_service.get_user_info(user_id)


@router.get("/{user_id}", response_model=UserModel)
async def get_user(
    user_id: str, user_service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    user = await user_service.get_user(user_id)
    return user.to_dict()
