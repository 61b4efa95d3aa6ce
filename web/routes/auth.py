"""Authentication routes for UTM Connect web application."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from loguru import logger

from utm_connect.core.exceptions import AuthError
from utm_connect.core.settings import get_settings
from utm_connect.repositories import User
from utm_connect.services import AuthService
from web.dependencies import REFRESH_COOKIE_NAME, get_auth_service, get_current_user
from web.models import (
    AccessTokenResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from web.rate_limit import limiter, login_rate_limit

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    """Store the refresh token in an HttpOnly cookie scoped to the whole API."""
    settings = get_settings()
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=refresh_token,
        httponly=True,
        secure=settings.is_production(),
        samesite="strict",
        max_age=settings.jwt_refresh_expire_days * 24 * 60 * 60,
        path="/",
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(login_rate_limit)
async def register(
    request: Request,
    response: Response,
    payload: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Register a new account and open a session.

    Args:
        request: FastAPI request object (required for rate limiter)
        response: FastAPI response object (for setting cookies)
        payload: Registration data

    Returns:
        Access token and public user data; the refresh token is set as a cookie
    """
    session = await auth_service.register(
        email=payload.email,
        name=payload.name,
        password=payload.password,
        password_confirm=payload.password_confirm,
        role=payload.role,
        university_group=payload.university_group,
        phone_number=payload.phone_number,
    )
    _set_refresh_cookie(response, session.refresh_token)
    return TokenResponse(access_token=session.access_token, user=session.user)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(login_rate_limit)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Login endpoint - returns an access token and sets the refresh cookie.

    Any refresh token issued earlier to the same user stops working.
    """
    session = await auth_service.login(credentials.email, credentials.password)
    _set_refresh_cookie(response, session.refresh_token)
    return TokenResponse(access_token=session.access_token, user=session.user)


@router.post("/refresh", response_model=AccessTokenResponse)
async def refresh(
    request: Request,
    payload: Optional[RefreshRequest] = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> AccessTokenResponse:
    """Exchange a refresh token (body first, then cookie) for a new access token."""
    token = payload.refresh_token if payload and payload.refresh_token else None
    if not token:
        token = request.cookies.get(REFRESH_COOKIE_NAME)
    if not token:
        raise AuthError("invalid refresh token")

    result = await auth_service.refresh_access_token(token)
    return AccessTokenResponse(access_token=result["access_token"])


@router.post("/logout")
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, str]:
    """Revoke all of the caller's refresh tokens and clear the cookie."""
    await auth_service.logout(current_user.id)
    response.delete_cookie(REFRESH_COOKIE_NAME, path="/")
    logger.debug(f"Refresh cookie cleared for user {current_user.id}")
    return {"message": "Logged out successfully"}


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)) -> Dict[str, Any]:
    """Current user without the password hash."""
    return current_user.to_dict()
