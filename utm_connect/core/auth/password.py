"""Password hashing and password policy validation."""

import functools
import re
from typing import List, NamedTuple, Optional

from utm_connect.core.exceptions import ValidationError
from utm_connect.core.settings import AppSettings

# Bcrypt has a maximum password length of 72 bytes
MAX_PASSWORD_BYTES = 72

# passlib 1.7.4's detect_wrap_bug hashes a 200-char test password, which
# bcrypt >= 5.0 rejects outright. Truncate only that one; user passwords
# over the limit are refused before they ever reach the backend.
import passlib.handlers.bcrypt as _pbcrypt  # noqa: E402

_original_calc_checksum = _pbcrypt._BcryptBackend._calc_checksum


def _patched_calc_checksum(self, secret):
    """Truncate over-long secrets at a UTF-8 boundary before calling bcrypt."""
    if isinstance(secret, bytes) and len(secret) > MAX_PASSWORD_BYTES:
        truncated = secret[:MAX_PASSWORD_BYTES]
        for i in range(len(truncated), 0, -1):
            try:
                truncated[:i].decode("utf-8")
                secret = truncated[:i]
                break
            except UnicodeDecodeError:
                continue
    return _original_calc_checksum(self, secret)


_pbcrypt._BcryptBackend._calc_checksum = _patched_calc_checksum

from passlib.context import CryptContext  # noqa: E402

DEFAULT_BCRYPT_ROUNDS = 10

SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


def validate_password_length(password: str) -> None:
    """
    Validate password doesn't exceed bcrypt limit.

    Raises ValidationError instead of silently truncating.

    Args:
        password: Password to validate

    Raises:
        ValidationError: If password exceeds maximum byte length
    """
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"Password exceeds maximum length of {MAX_PASSWORD_BYTES} bytes. "
            f"Current length: {len(password_bytes)} bytes. "
            "Please use a shorter password.",
            field="password",
        )


class PasswordHasher:
    """Salted one-way password hashing backed by bcrypt."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        """
        Initialize hasher.

        Args:
            rounds: bcrypt cost factor (log2 of the iteration count)
        """
        self.rounds = rounds
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "PasswordHasher":
        return cls(rounds=settings.bcrypt_rounds)

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password with embedded salt and cost

        Raises:
            ValidationError: If password exceeds maximum byte length
        """
        validate_password_length(password)
        return str(self._context.hash(password))

    def verify(self, password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Over-long or malformed inputs never match.
        """
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bool(self._context.verify(password, hashed_password))
        except ValueError:
            # passlib raises for hashes it cannot identify
            return False


@functools.lru_cache(maxsize=None)
def dummy_hash(rounds: int) -> str:
    """
    Throwaway bcrypt hash at the given cost, computed once per process.

    Verifying against it costs the same as checking a real user's password.
    """
    return PasswordHasher(rounds=rounds).hash("dummy-password-for-timing")


class PolicyResult(NamedTuple):
    """Outcome of a password policy check."""

    valid: bool
    violations: List[str]


class PasswordPolicy:
    """Configurable password complexity rules.

    Every rule is evaluated so callers get the complete list of problems.
    """

    def __init__(
        self,
        min_length: int = 12,
        require_uppercase: bool = True,
        require_number: bool = True,
        require_special: bool = True,
    ):
        self.min_length = min_length
        self.require_uppercase = require_uppercase
        self.require_number = require_number
        self.require_special = require_special

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "PasswordPolicy":
        return cls(
            min_length=settings.password_min_length,
            require_uppercase=settings.password_require_uppercase,
            require_number=settings.password_require_number,
            require_special=settings.password_require_special,
        )

    def validate(self, password: str) -> PolicyResult:
        """
        Check a candidate password.

        Args:
            password: Password to check

        Returns:
            PolicyResult with ``valid`` and the ordered list of violations
        """
        violations: List[str] = []

        if len(password) < self.min_length:
            violations.append(f"Password must be at least {self.min_length} characters long")
        if self.require_uppercase and not re.search(r"[A-Z]", password):
            violations.append("Password must contain at least one uppercase letter")
        if self.require_number and not re.search(r"[0-9]", password):
            violations.append("Password must contain at least one number")
        if self.require_special and not SPECIAL_CHARACTERS.search(password):
            violations.append(
                "Password must contain at least one special character (!@#$%^&*...)"
            )

        return PolicyResult(valid=not violations, violations=violations)

    def enforce(self, password: str, field: Optional[str] = "password") -> None:
        """Raise ValidationError carrying every violation if the password fails."""
        result = self.validate(password)
        if not result.valid:
            raise ValidationError(field=field, violations=result.violations)
