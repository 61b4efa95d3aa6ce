"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from utm_connect.core.settings import AppSettings, get_settings, reset_settings

ACCESS = "a" * 32
REFRESH = "b" * 32


def build(**overrides):
    values = {"jwt_secret": ACCESS, "jwt_refresh_secret": REFRESH}
    values.update(overrides)
    return AppSettings(**values)


class TestAppSettings:
    def test_defaults(self):
        settings = build()
        assert settings.jwt_access_expire_minutes == 15
        assert settings.jwt_refresh_expire_days == 7
        assert settings.password_min_length == 12
        assert settings.login_rate_limit == "10/minute"

    def test_secrets_must_differ(self):
        with pytest.raises(ValidationError, match="must be different"):
            build(jwt_refresh_secret=ACCESS)

    def test_short_secret_is_rejected(self):
        with pytest.raises(ValidationError, match="at least 32 characters"):
            build(jwt_secret="short")

    def test_secrets_are_required(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        with pytest.raises(ValidationError):
            AppSettings(_env_file=None, jwt_refresh_secret=REFRESH)

    def test_unsupported_algorithm(self):
        with pytest.raises(ValidationError, match="Unsupported JWT algorithm"):
            build(jwt_algorithm="RS256")

    def test_algorithm_is_uppercased(self):
        assert build(jwt_algorithm="hs512").jwt_algorithm == "HS512"

    def test_invalid_env(self):
        with pytest.raises(ValidationError):
            build(env="moon")

    def test_cors_origins_parsing(self):
        settings = build(cors_allowed_origins="https://a.com, https://b.com ,")
        assert settings.get_cors_origins() == ["https://a.com", "https://b.com"]

    def test_trusted_proxies_parsing(self):
        settings = build(trusted_proxies="10.0.0.1, 10.0.0.2")
        assert settings.get_trusted_proxies() == frozenset({"10.0.0.1", "10.0.0.2"})

    def test_secrets_are_not_printed(self):
        assert ACCESS not in repr(build())


def test_get_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("JWT_ACCESS_EXPIRE_MINUTES", "30")
    reset_settings()

    settings = get_settings()

    assert settings.jwt_access_expire_minutes == 30
    assert get_settings() is settings
