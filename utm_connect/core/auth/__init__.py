"""Authentication primitives: password hashing, policy, tokens and refresh-token storage."""

from .jwt_tokens import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    JWTSettings,
    TokenPayload,
    TokenService,
)
from .password import (
    MAX_PASSWORD_BYTES,
    PasswordHasher,
    PasswordPolicy,
    PolicyResult,
    dummy_hash,
    validate_password_length,
)
from .token_store import RefreshTokenStore, hash_token

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "JWTSettings",
    "TokenPayload",
    "TokenService",
    "MAX_PASSWORD_BYTES",
    "PasswordHasher",
    "PasswordPolicy",
    "PolicyResult",
    "dummy_hash",
    "validate_password_length",
    "RefreshTokenStore",
    "hash_token",
]
