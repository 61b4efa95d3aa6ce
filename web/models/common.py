"""Common shared models for UTM Connect web application."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class GroupCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=255)
    user_ids: List[str] = Field(default_factory=list, alias="userIds")


class GroupUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    user_ids: Optional[List[str]] = Field(default=None, alias="userIds")


class PostCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: Optional[str] = None
    photo_urls: List[str] = Field(default_factory=list, alias="photoUrls")


class PostUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: Optional[str] = None
    photo_urls: Optional[List[str]] = Field(default=None, alias="photoUrls")


class CommentCreateRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class MessageCreateRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)
