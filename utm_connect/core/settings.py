"""Application settings with Pydantic validation."""

from typing import List, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Supported JWT algorithms whitelist (shared-secret algorithms only)
SUPPORTED_JWT_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})

MIN_JWT_SECRET_LENGTH = 32


class AppSettings(BaseSettings):
    """Application settings with validation and environment variable support."""

    # Environment
    env: str = Field(
        default="production", description="Environment (production, staging, development, testing)"
    )

    # Database Configuration
    database_url: str = Field(
        default="postgresql://localhost:5432/utm_connect",
        description="PostgreSQL database connection URL",
    )
    db_pool_size: int = Field(default=10, ge=1, le=100, description="Database connection pool size")
    db_command_timeout: float = Field(
        default=60.0, gt=0, description="Per-statement timeout in seconds"
    )

    # JWT
    jwt_secret: SecretStr = Field(..., description="Secret used to sign access tokens")
    jwt_refresh_secret: SecretStr = Field(..., description="Secret used to sign refresh tokens")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_access_expire_minutes: int = Field(
        default=15, ge=1, description="Access token lifetime in minutes"
    )
    jwt_refresh_expire_days: int = Field(
        default=7, ge=1, description="Refresh token lifetime in days"
    )
    jwt_issuer: str = Field(default="utm-connect", description="Issuer claim for all tokens")

    # Password policy
    bcrypt_rounds: int = Field(default=10, ge=4, le=31, description="bcrypt cost factor")
    password_min_length: int = Field(default=12, ge=1, description="Minimum password length")
    password_require_uppercase: bool = Field(default=True)
    password_require_number: bool = Field(default=True)
    password_require_special: bool = Field(default=True)

    # CORS Configuration
    cors_allowed_origins: str = Field(
        default="http://localhost:8080",
        description="Comma-separated list of allowed CORS origins",
    )

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True, description="Enable rate limiting")
    login_rate_limit: str = Field(
        default="10/minute", description="Rate limit applied to login and register"
    )
    trusted_proxies: str = Field(
        default="", description="Comma-separated proxy IPs whose X-Forwarded-For is trusted"
    )

    # Uploads
    uploads_dir: str = Field(default="uploads", description="Directory for uploaded images")
    max_upload_bytes: int = Field(
        default=5 * 1024 * 1024, ge=1, description="Maximum accepted upload size in bytes"
    )

    # Logging
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(default=True, description="Write JSON lines to the log file")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env
    )

    @field_validator("jwt_secret", "jwt_refresh_secret")
    @classmethod
    def validate_secret_length(cls, v: SecretStr) -> SecretStr:
        """Validate JWT secret length."""
        if len(v.get_secret_value()) < MIN_JWT_SECRET_LENGTH:
            raise ValueError(f"JWT secrets must be at least {MIN_JWT_SECRET_LENGTH} characters")
        return v

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        """Validate algorithm against whitelist."""
        v_upper = v.upper()
        if v_upper not in SUPPORTED_JWT_ALGORITHMS:
            raise ValueError(
                f"Unsupported JWT algorithm: {v}. "
                f"Supported algorithms: {', '.join(sorted(SUPPORTED_JWT_ALGORITHMS))}"
            )
        return v_upper

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value."""
        allowed = ["production", "development", "testing", "staging"]
        if v.lower() not in allowed:
            raise ValueError(f'ENV must be one of: {", ".join(allowed)}')
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f'LOG_LEVEL must be one of: {", ".join(allowed)}')
        return v_upper

    @model_validator(mode="after")
    def validate_distinct_secrets(self) -> "AppSettings":
        """Access and refresh tokens must never share a signing secret."""
        if self.jwt_secret.get_secret_value() == self.jwt_refresh_secret.get_secret_value():
            raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET must be different")
        return self

    def get_cors_origins(self) -> List[str]:
        """
        Get CORS allowed origins as a list.

        Returns:
            List of allowed origin URLs
        """
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    def get_trusted_proxies(self) -> frozenset:
        return frozenset(p.strip() for p in self.trusted_proxies.split(",") if p.strip())

    def is_development(self) -> bool:
        return self.env in ("development", "testing")

    def is_production(self) -> bool:
        """Staging is treated as production."""
        return not self.is_development()


# Singleton instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """
    Get application settings singleton.

    Returns:
        AppSettings instance

    Raises:
        pydantic.ValidationError: If required settings are missing or invalid
    """
    global _settings
    if _settings is None:
        _settings = AppSettings()  # type: ignore[call-arg]
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
