"""User models for UTM Connect web application."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserCreateRequest(BaseModel):
    """User creation request."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    password: str
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    university_group: Optional[str] = Field(default=None, alias="group")
    role: int = Field(default=0, ge=0, le=2)


class UserModel(BaseModel):
    """User response model. Never carries the password hash."""

    id: str
    email: str
    name: str
    phone_number: Optional[str] = None
    university_group: Optional[str] = None
    role: int = 0
    primary_photo_url: Optional[str] = None
    photo_urls: List[str] = []
    friend_ids: List[str] = []
    friend_requests_sent: List[str] = []
    friend_requests_received: List[str] = []
    joined_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class FriendRequest(BaseModel):
    """Friend request/accept/remove body; the acting user comes from the token."""

    model_config = ConfigDict(populate_by_name=True)

    target_id: str = Field(..., min_length=1, alias="targetId")
