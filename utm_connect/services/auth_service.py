"""Registration, login and session token orchestration."""

import asyncio
from contextlib import contextmanager
from typing import Any, Dict, Iterator, NamedTuple, Optional, Protocol

import asyncpg
from loguru import logger

from utm_connect.core.auth import (
    PasswordHasher,
    PasswordPolicy,
    RefreshTokenStore,
    TokenService,
    dummy_hash,
    validate_password_length,
)
from utm_connect.core.exceptions import (
    AuthError,
    ConflictError,
    DatabaseError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from utm_connect.repositories.user_repository import ROLE_STUDENT, User
from utm_connect.utils import mask_token

# Failures of the datastore that callers must never see verbatim
DATASTORE_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
    DatabaseError,
)


class UserStore(Protocol):
    """Subset of the user repository the auth flows rely on."""

    async def get_by_id(self, id: str) -> Optional[User]: ...

    async def get_by_email(self, email: str) -> Optional[User]: ...

    async def create(self, data: Dict[str, Any]) -> User: ...


class AuthSession(NamedTuple):
    """Tokens handed out by register and login."""

    access_token: str
    refresh_token: str
    user: Dict[str, Any]


@contextmanager
def datastore_guard(operation: str) -> Iterator[None]:
    """Log datastore failures in full and re-raise them as a generic InternalError."""
    try:
        yield
    except DATASTORE_ERRORS as e:
        logger.error(f"Datastore failure during {operation}: {e.__class__.__name__}: {e}")
        raise InternalError(details={"operation": operation}) from e


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Auth session manager.

    Wires the password hasher, password policy, token service and refresh
    token store together. Holds no per-request state, so a single instance
    may serve concurrent requests.
    """

    def __init__(
        self,
        users: UserStore,
        refresh_tokens: RefreshTokenStore,
        tokens: TokenService,
        hasher: PasswordHasher,
        policy: PasswordPolicy,
    ):
        """
        Initialize auth service.

        Args:
            users: User persistence
            refresh_tokens: Hashed refresh token bookkeeping
            tokens: Access/refresh token issuer and verifier
            hasher: Password hasher
            policy: Password complexity rules
        """
        self.users = users
        self.refresh_tokens = refresh_tokens
        self.tokens = tokens
        self.hasher = hasher
        self.policy = policy

    async def _hash(self, password: str) -> str:
        # bcrypt is CPU bound; keep it off the event loop
        return await asyncio.to_thread(self.hasher.hash, password)

    async def _verify(self, password: str, hashed: str) -> bool:
        return await asyncio.to_thread(self.hasher.verify, password, hashed)

    async def _burn_verify(self, password: str) -> None:
        """Spend one bcrypt verification so unknown emails take as long as wrong passwords."""
        hashed = await asyncio.to_thread(dummy_hash, self.hasher.rounds)
        await self._verify(password, hashed)

    def _issue_pair(self, user: User) -> AuthSession:
        return AuthSession(
            access_token=self.tokens.issue_access(user.id, user.email),
            refresh_token=self.tokens.issue_refresh(user.id),
            user={"id": user.id, "email": user.email, "name": user.name},
        )

    async def register(
        self,
        email: str,
        name: str,
        password: str,
        password_confirm: str,
        role: Optional[int] = None,
        university_group: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> AuthSession:
        """
        Create an account and open a session for it.

        Raises:
            ValidationError: Passwords differ or violate the policy
            ConflictError: Email already registered
            InternalError: Datastore failure
        """
        # Input checks happen before any datastore access
        if password != password_confirm:
            raise ValidationError("passwords do not match", field="password_confirm")
        self.policy.enforce(password)
        validate_password_length(password)

        email = normalize_email(email)
        with datastore_guard("register"):
            if await self.users.get_by_email(email) is not None:
                raise ConflictError("email already registered")

            hashed = await self._hash(password)
            user = await self.users.create(
                {
                    "email": email,
                    "name": name,
                    "password": hashed,
                    "phone_number": phone_number,
                    "university_group": university_group,
                    "role": ROLE_STUDENT if role is None else role,
                }
            )

            session = self._issue_pair(user)
            await self.refresh_tokens.persist(user.id, session.refresh_token, self.tokens.refresh_ttl)

        logger.info(f"User registered: {user.id}")
        return session

    async def login(self, email: str, password: str) -> AuthSession:
        """
        Authenticate with email and password.

        Every earlier refresh token of the user is revoked, leaving the
        new one as the only active token.

        Raises:
            AuthError: Unknown email or wrong password (same message for both)
            InternalError: Datastore failure
        """
        with datastore_guard("login"):
            user = await self.users.get_by_email(normalize_email(email))
            if user is None:
                await self._burn_verify(password)
                logger.info("Login failed: unknown email")
                raise AuthError("invalid email or password")

            if not await self._verify(password, user.password):
                logger.info(f"Login failed: wrong password for user {user.id}")
                raise AuthError("invalid email or password")

            session = self._issue_pair(user)
            await self.refresh_tokens.rotate(user.id, session.refresh_token, self.tokens.refresh_ttl)

        logger.info(f"User logged in: {user.id}")
        return session

    async def refresh_access_token(self, refresh_token: str) -> Dict[str, str]:
        """
        Exchange a valid, unrevoked refresh token for a new access token.

        The refresh token itself is not rotated.

        Raises:
            AuthError: Invalid token, vanished user, or revoked/unknown token
            InternalError: Datastore failure
        """
        payload = self.tokens.verify_refresh(refresh_token)
        if payload is None:
            raise AuthError("invalid refresh token")

        with datastore_guard("refresh"):
            user = await self.users.get_by_id(payload.user_id)
            if user is None:
                raise AuthError("user not found")

            record = await self.refresh_tokens.find_matching(user.id, refresh_token)
            if record is None:
                logger.info(
                    f"Refresh rejected for user {user.id}: token {mask_token(refresh_token)} "
                    "revoked or unknown"
                )
                raise AuthError("refresh token not found or revoked")

        return {"access_token": self.tokens.issue_access(user.id, user.email)}

    async def logout(self, user_id: str) -> None:
        """Revoke every active refresh token of the user. Idempotent."""
        with datastore_guard("logout"):
            revoked = await self.refresh_tokens.revoke_all_active(user_id)
        logger.info(f"User logged out: {user_id} ({revoked} token(s) revoked)")

    async def get_user_from_token(self, access_token: str) -> User:
        """
        Resolve an access token to the full user record.

        Raises:
            AuthError: Token invalid or expired
            NotFoundError: User no longer exists
            InternalError: Datastore failure
        """
        payload = self.tokens.verify_access(access_token)
        if payload is None:
            raise AuthError("invalid token")

        with datastore_guard("get_user_from_token"):
            user = await self.users.get_by_id(payload.user_id)
        if user is None:
            raise NotFoundError("user not found")
        return user
