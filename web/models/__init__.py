"""Pydantic models for UTM Connect web application."""

# Re-export all models for convenience
from .auth import (
    AccessTokenResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from .common import (
    CommentCreateRequest,
    GroupCreateRequest,
    GroupUpdateRequest,
    MessageCreateRequest,
    MessageResponse,
    PostCreateRequest,
    PostUpdateRequest,
)
from .links import CampaignCreateRequest, LinkCreateRequest
from .users import FriendRequest, UserCreateRequest, UserModel

__all__ = [
    # Auth models
    "AccessTokenResponse",
    "LoginRequest",
    "RefreshRequest",
    "RegisterRequest",
    "TokenResponse",
    # User models
    "FriendRequest",
    "UserCreateRequest",
    "UserModel",
    # Social models
    "CommentCreateRequest",
    "GroupCreateRequest",
    "GroupUpdateRequest",
    "MessageCreateRequest",
    "MessageResponse",
    "PostCreateRequest",
    "PostUpdateRequest",
    # Link models
    "CampaignCreateRequest",
    "LinkCreateRequest",
]
