"""JWT access/refresh token creation and verification."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, NamedTuple, Optional

import jwt
from jwt.exceptions import InvalidTokenError
from loguru import logger

from utm_connect.core.settings import AppSettings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class JWTSettings(NamedTuple):
    """JWT configuration settings."""

    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"
    access_expire_minutes: int = 15
    refresh_expire_days: int = 7
    issuer: str = "utm-connect"

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "JWTSettings":
        return cls(
            access_secret=settings.jwt_secret.get_secret_value(),
            refresh_secret=settings.jwt_refresh_secret.get_secret_value(),
            algorithm=settings.jwt_algorithm,
            access_expire_minutes=settings.jwt_access_expire_minutes,
            refresh_expire_days=settings.jwt_refresh_expire_days,
            issuer=settings.jwt_issuer,
        )


class TokenPayload(NamedTuple):
    """Decoded claims of a verified token."""

    user_id: str
    token_type: str
    issued_at: datetime
    expires_at: datetime
    jti: str
    email: Optional[str] = None


class TokenService:
    """Mints and validates access and refresh tokens.

    Access and refresh tokens are signed with different secrets and carry a
    ``type`` claim, so one can never be accepted in place of the other.
    """

    def __init__(self, settings: JWTSettings):
        if settings.access_secret == settings.refresh_secret:
            raise ValueError("Access and refresh tokens must use different secrets")
        self.settings = settings

    @property
    def refresh_ttl(self) -> timedelta:
        return timedelta(days=self.settings.refresh_expire_days)

    @property
    def access_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.access_expire_minutes)

    def _encode(self, claims: Dict[str, Any], secret: str, expires_delta: timedelta) -> str:
        iat = datetime.now(timezone.utc)
        to_encode = claims.copy()
        to_encode.update(
            {
                "iat": iat,
                "exp": iat + expires_delta,
                "iss": self.settings.issuer,
                # Unique token ID: two tokens minted in the same second still differ
                "jti": str(uuid.uuid4()),
            }
        )
        return str(jwt.encode(to_encode, secret, algorithm=self.settings.algorithm))

    def issue_access(
        self, user_id: str, email: str, expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a signed access token.

        Args:
            user_id: Subject of the token
            email: User email, embedded for convenience
            expires_delta: Optional custom lifetime (defaults to configured minutes)

        Returns:
            Encoded JWT
        """
        return self._encode(
            {"sub": user_id, "email": email, "type": ACCESS_TOKEN_TYPE},
            self.settings.access_secret,
            expires_delta if expires_delta is not None else self.access_ttl,
        )

    def issue_refresh(self, user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a signed refresh token.

        Args:
            user_id: Subject of the token
            expires_delta: Optional custom lifetime (defaults to configured days)

        Returns:
            Encoded JWT
        """
        return self._encode(
            {"sub": user_id, "type": REFRESH_TOKEN_TYPE},
            self.settings.refresh_secret,
            expires_delta if expires_delta is not None else self.refresh_ttl,
        )

    def _decode(self, token: str, secret: str, expected_type: str) -> Optional[TokenPayload]:
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self.settings.algorithm],
                issuer=self.settings.issuer,
                options={"require": ["exp", "iat", "iss", "sub", "type"]},
            )
        except InvalidTokenError as e:
            logger.debug(f"{expected_type} token rejected: {e.__class__.__name__}")
            return None

        if claims.get("type") != expected_type:
            logger.debug(f"Token type mismatch: expected {expected_type}, got {claims.get('type')}")
            return None

        return TokenPayload(
            user_id=str(claims["sub"]),
            token_type=claims["type"],
            issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            jti=claims.get("jti", ""),
            email=claims.get("email"),
        )

    def verify_access(self, token: str) -> Optional[TokenPayload]:
        """
        Verify an access token.

        Returns:
            Decoded payload, or None for any expired, forged, malformed,
            foreign-issuer or wrong-type token
        """
        return self._decode(token, self.settings.access_secret, ACCESS_TOKEN_TYPE)

    def verify_refresh(self, token: str) -> Optional[TokenPayload]:
        """Verify a refresh token. Same failure contract as ``verify_access``."""
        return self._decode(token, self.settings.refresh_secret, REFRESH_TOKEN_TYPE)
