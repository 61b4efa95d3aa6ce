"""Tests for password hashing and the password policy."""

import pytest

from utm_connect.core.auth import (
    MAX_PASSWORD_BYTES,
    PasswordHasher,
    PasswordPolicy,
    validate_password_length,
)
from utm_connect.core.exceptions import ValidationError
from utm_connect.core.settings import get_settings


class TestPasswordHasher:
    """Tests for the bcrypt-backed hasher."""

    def test_verify_matches_original_password(self, hasher):
        hashed = hasher.hash("Str0ng!Pass1234")
        assert hasher.verify("Str0ng!Pass1234", hashed) is True

    def test_verify_rejects_other_password(self, hasher):
        hashed = hasher.hash("Str0ng!Pass1234")
        assert hasher.verify("Str0ng!Pass1235", hashed) is False

    def test_hash_is_salted(self, hasher):
        assert hasher.hash("same-password") != hasher.hash("same-password")

    def test_hash_embeds_cost_factor(self):
        hashed = PasswordHasher(rounds=5).hash("Str0ng!Pass1234")
        assert hashed.startswith("$2b$05$")

    def test_hash_never_contains_plaintext(self, hasher):
        assert "Str0ng!Pass1234" not in hasher.hash("Str0ng!Pass1234")

    def test_hash_rejects_password_over_limit(self, hasher):
        with pytest.raises(ValidationError) as exc_info:
            hasher.hash("a" * (MAX_PASSWORD_BYTES + 1))
        assert exc_info.value.field == "password"

    def test_verify_over_limit_is_false(self, hasher):
        hashed = hasher.hash("a" * MAX_PASSWORD_BYTES)
        assert hasher.verify("a" * (MAX_PASSWORD_BYTES + 1), hashed) is False

    def test_verify_malformed_hash_is_false(self, hasher):
        assert hasher.verify("anything", "not-a-bcrypt-hash") is False

    def test_from_settings_uses_configured_rounds(self, monkeypatch):
        monkeypatch.setenv("BCRYPT_ROUNDS", "6")
        from utm_connect.core.settings import reset_settings

        reset_settings()
        assert PasswordHasher.from_settings(get_settings()).rounds == 6


class TestValidatePasswordLength:
    def test_multibyte_characters_count_as_bytes(self):
        # 25 three-byte characters = 75 bytes
        with pytest.raises(ValidationError):
            validate_password_length("€" * 25)

    def test_exact_limit_is_allowed(self):
        validate_password_length("a" * MAX_PASSWORD_BYTES)


class TestPasswordPolicy:
    """Tests for password complexity rules."""

    def test_strong_password_is_valid(self, policy):
        result = policy.validate("Str0ng!Pass1234")
        assert result.valid is True
        assert result.violations == []

    def test_weak_password_reports_every_violation_in_order(self, policy):
        result = policy.validate("weak")
        assert result.valid is False
        assert result.violations == [
            "Password must be at least 12 characters long",
            "Password must contain at least one uppercase letter",
            "Password must contain at least one number",
            "Password must contain at least one special character (!@#$%^&*...)",
        ]

    @pytest.mark.parametrize(
        "password,expected",
        [
            ("str0ng!pass1234", "Password must contain at least one uppercase letter"),
            ("Strong!Password", "Password must contain at least one number"),
            ("Str0ngPass1234", "Password must contain at least one special character (!@#$%^&*...)"),
            ("S0!short", "Password must be at least 12 characters long"),
        ],
    )
    def test_single_violation(self, policy, password, expected):
        assert policy.validate(password).violations == [expected]

    def test_rules_can_be_disabled(self):
        relaxed = PasswordPolicy(
            min_length=4, require_uppercase=False, require_number=False, require_special=False
        )
        assert relaxed.validate("abcd").valid is True

    def test_enforce_raises_with_violations(self, policy):
        with pytest.raises(ValidationError) as exc_info:
            policy.enforce("weak")
        error = exc_info.value
        assert error.field == "password"
        assert len(error.violations) == 4
        assert "Password must contain at least one number" in error.message

    def test_enforce_passes_strong_password(self, policy):
        policy.enforce("Str0ng!Pass1234")
