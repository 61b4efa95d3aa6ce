"""Authentication models for UTM Connect web application."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    """Registration request model."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    password: str
    password_confirm: str = Field(..., alias="passwordConfirm")
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    role: Optional[int] = Field(default=None, ge=0, le=2)
    university_group: Optional[str] = Field(default=None, alias="group")


class LoginRequest(BaseModel):
    """Login request model."""

    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    """Refresh request; the token may come from the cookie instead."""

    refresh_token: Optional[str] = None


class TokenResponse(BaseModel):
    """Token response model."""

    access_token: str
    token_type: str = "bearer"
    user: Dict[str, Any]


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
