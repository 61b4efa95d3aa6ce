"""Pytest configuration and common fixtures."""

import os
import secrets
import sys
import uuid
import warnings
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

# Try to load test-specific environment file if it exists
test_env_file = Path(__file__).parent / ".env.test"
if test_env_file.exists():
    load_dotenv(test_env_file)

# CRITICAL: Set environment variables BEFORE any utm_connect imports.
# Per-test isolation is provided by the setup_test_environment fixture.
os.environ.setdefault("JWT_SECRET", secrets.token_urlsafe(48))
os.environ.setdefault("JWT_REFRESH_SECRET", secrets.token_urlsafe(48))
os.environ.setdefault("ENV", "testing")

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock, Mock

# NOW it's safe to import from utm_connect
import pytest

from utm_connect.core.auth import (
    JWTSettings,
    PasswordHasher,
    PasswordPolicy,
    RefreshTokenStore,
    TokenService,
)
from utm_connect.core.exceptions import ConflictError
from utm_connect.models.database import Database
from utm_connect.repositories.refresh_token_repository import RefreshToken
from utm_connect.repositories.user_repository import ROLE_STUDENT, User

TEST_ACCESS_SECRET = "access-secret-for-tests-0123456789abcdef"
TEST_REFRESH_SECRET = "refresh-secret-for-tests-0123456789abcdef"


def pytest_configure(config):
    """Configure pytest environment before tests run."""
    warnings.filterwarnings("ignore", message="coroutine.*was never awaited")


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Automatically set up test environment for all tests."""
    monkeypatch.setenv("ENV", "testing")
    monkeypatch.setenv("JWT_SECRET", TEST_ACCESS_SECRET)
    monkeypatch.setenv("JWT_REFRESH_SECRET", TEST_REFRESH_SECRET)
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost:5432/utm_connect_test")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    monkeypatch.setenv("UPLOADS_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "http://localhost:8080")

    # Reset settings singleton so each test gets fresh settings
    from utm_connect.core.settings import reset_settings

    reset_settings()
    yield
    reset_settings()


class InMemoryUserStore:
    """User store double with the same contract as UserRepository."""

    def __init__(self):
        self.users: Dict[str, User] = {}
        self.create_calls = 0

    async def get_by_id(self, id: str) -> Optional[User]:
        return self.users.get(id)

    async def get_by_email(self, email: str) -> Optional[User]:
        for user in self.users.values():
            if user.email.lower() == email.lower():
                return user
        return None

    async def create(self, data: Dict[str, Any]) -> User:
        self.create_calls += 1
        if await self.get_by_email(data["email"]) is not None:
            raise ConflictError("email already registered")
        user = User(
            id=str(uuid.uuid4()),
            email=data["email"],
            name=data["name"],
            password=data["password"],
            phone_number=data.get("phone_number"),
            university_group=data.get("university_group"),
            role=data.get("role", ROLE_STUDENT),
            created_at=datetime.now(timezone.utc),
        )
        self.users[user.id] = user
        return user


class InMemoryRefreshTokenBackend:
    """Refresh token backend double with the same contract as RefreshTokenRepository."""

    def __init__(self):
        self.rows: List[RefreshToken] = []

    async def create_row(self, token_hash: str, user_id: str, expires_at: datetime) -> str:
        row = RefreshToken(
            id=str(uuid.uuid4()),
            token_hash=token_hash,
            user_id=user_id,
            expires_at=expires_at,
            created_at=datetime.now(timezone.utc),
        )
        self.rows.append(row)
        return row.id

    async def find_active(self, user_id: str) -> List[RefreshToken]:
        now = datetime.now(timezone.utc)
        return [
            row
            for row in self.rows
            if row.user_id == user_id and not row.is_revoked and row.expires_at > now
        ]

    async def revoke_all_active(self, user_id: str) -> int:
        count = 0
        for row in self.rows:
            if row.user_id == user_id and not row.is_revoked:
                row.is_revoked = True
                count += 1
        return count

    async def replace_active(self, user_id: str, token_hash: str, expires_at: datetime) -> str:
        await self.revoke_all_active(user_id)
        return await self.create_row(token_hash, user_id, expires_at)

    def active_rows(self, user_id: str) -> List[RefreshToken]:
        return [row for row in self.rows if row.user_id == user_id and not row.is_revoked]


@pytest.fixture
def jwt_settings() -> JWTSettings:
    return JWTSettings(
        access_secret=TEST_ACCESS_SECRET,
        refresh_secret=TEST_REFRESH_SECRET,
        algorithm="HS256",
        access_expire_minutes=15,
        refresh_expire_days=7,
        issuer="utm-connect",
    )


@pytest.fixture
def token_service(jwt_settings) -> TokenService:
    return TokenService(jwt_settings)


@pytest.fixture
def hasher() -> PasswordHasher:
    """Cheap bcrypt cost so tests stay fast."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def policy() -> PasswordPolicy:
    return PasswordPolicy()


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def token_backend() -> InMemoryRefreshTokenBackend:
    return InMemoryRefreshTokenBackend()


@pytest.fixture
def refresh_store(token_backend) -> RefreshTokenStore:
    return RefreshTokenStore(token_backend)


@pytest.fixture
def mock_conn():
    """asyncpg connection double; configure fetch/fetchrow/execute per test."""
    conn = AsyncMock()
    conn.transaction = MagicMock()
    conn.transaction.return_value.__aenter__ = AsyncMock(return_value=None)
    conn.transaction.return_value.__aexit__ = AsyncMock(return_value=False)
    return conn


@pytest.fixture
def mock_db(mock_conn):
    """Database double whose get_connection() and transaction() yield mock_conn."""
    db = Mock(spec=Database)
    for name in ("get_connection", "transaction"):
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=mock_conn)
        context.__aexit__ = AsyncMock(return_value=False)
        setattr(db, name, MagicMock(return_value=context))
    return db


@pytest.fixture
def make_user():
    """Factory building User entities with sensible defaults."""

    def _make(**overrides: Any) -> User:
        data: Dict[str, Any] = {
            "id": str(uuid.uuid4()),
            "email": "student@example.com",
            "name": "Student",
            "password": "$2b$04$notarealhash",
        }
        data.update(overrides)
        return User(**data)

    return _make

