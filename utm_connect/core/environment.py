"""Deployment environment names and the checks built on them."""

from typing import FrozenSet

from utm_connect.core.settings import get_settings


class Environment:
    """Named environments; the active one comes from the ENV setting."""

    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"
    TESTING = "testing"

    # Localhost CORS, API docs and non-Secure cookies are allowed here
    RELAXED: FrozenSet[str] = frozenset({DEVELOPMENT, TESTING})

    @classmethod
    def current(cls) -> str:
        return get_settings().env

    @classmethod
    def is_relaxed(cls, env: str) -> bool:
        return env in cls.RELAXED

    @classmethod
    def is_production(cls) -> bool:
        """Staging counts as production: it must be configured like it."""
        return not cls.is_relaxed(cls.current())

    @classmethod
    def is_development(cls) -> bool:
        return cls.is_relaxed(cls.current())
