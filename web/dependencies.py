"""Shared dependencies for the UTM Connect web application.

Repositories and services are built per request from the singleton database
and the cached settings; the services themselves hold no request state.
"""

from typing import AsyncIterator, Optional

from fastapi import Depends, Request

from utm_connect.core.auth import (
    JWTSettings,
    PasswordHasher,
    PasswordPolicy,
    RefreshTokenStore,
    TokenService,
)
from utm_connect.core.exceptions import AuthError
from utm_connect.core.settings import get_settings
from utm_connect.models.database import Database
from utm_connect.models.db_factory import DatabaseFactory
from utm_connect.repositories import (
    CampaignRepository,
    ConversationRepository,
    GroupRepository,
    LinkRepository,
    PostRepository,
    RefreshTokenRepository,
    User,
    UserRepository,
)
from utm_connect.services import (
    AuthService,
    CampaignService,
    FileStorage,
    FriendService,
    GroupService,
    LinkService,
    MessageService,
    PostService,
    UploadService,
    UserService,
)

REFRESH_COOKIE_NAME = "refresh_token"


def extract_bearer_token(request: Request) -> Optional[str]:
    """
    Extract the raw access token from the Authorization header.

    Args:
        request: FastAPI request object

    Returns:
        Optional[str]: Raw JWT string, or None if the header is missing or not Bearer
    """
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header[len("Bearer "):].strip()
        return token or None
    return None


async def get_db() -> AsyncIterator[Database]:
    """
    Yield the shared, connected database.

    Yields:
        Connected database instance

    Note:
        Do NOT close the database in route handlers.
        DatabaseFactory.close_instance() handles shutdown.
    """
    db = await DatabaseFactory.ensure_connected()
    yield db


async def get_user_repository(db: Database = Depends(get_db)) -> UserRepository:
    """Get UserRepository instance."""
    return UserRepository(db)


async def get_refresh_token_repository(db: Database = Depends(get_db)) -> RefreshTokenRepository:
    return RefreshTokenRepository(db)


async def get_group_repository(db: Database = Depends(get_db)) -> GroupRepository:
    return GroupRepository(db)


async def get_post_repository(db: Database = Depends(get_db)) -> PostRepository:
    return PostRepository(db)


async def get_campaign_repository(db: Database = Depends(get_db)) -> CampaignRepository:
    return CampaignRepository(db)


async def get_link_repository(db: Database = Depends(get_db)) -> LinkRepository:
    return LinkRepository(db)


async def get_conversation_repository(db: Database = Depends(get_db)) -> ConversationRepository:
    return ConversationRepository(db)


def get_password_hasher() -> PasswordHasher:
    return PasswordHasher.from_settings(get_settings())


def get_password_policy() -> PasswordPolicy:
    return PasswordPolicy.from_settings(get_settings())


def get_token_service() -> TokenService:
    return TokenService(JWTSettings.from_settings(get_settings()))


async def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    refresh_tokens: RefreshTokenRepository = Depends(get_refresh_token_repository),
    tokens: TokenService = Depends(get_token_service),
    hasher: PasswordHasher = Depends(get_password_hasher),
    policy: PasswordPolicy = Depends(get_password_policy),
) -> AuthService:
    """Get AuthService wired to the database-backed stores."""
    return AuthService(
        users=users,
        refresh_tokens=RefreshTokenStore(refresh_tokens),
        tokens=tokens,
        hasher=hasher,
        policy=policy,
    )


async def get_user_service(
    users: UserRepository = Depends(get_user_repository),
    groups: GroupRepository = Depends(get_group_repository),
    posts: PostRepository = Depends(get_post_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    policy: PasswordPolicy = Depends(get_password_policy),
) -> UserService:
    return UserService(users, groups, posts, hasher, policy)


async def get_friend_service(
    users: UserRepository = Depends(get_user_repository),
) -> FriendService:
    return FriendService(users)


async def get_group_service(
    groups: GroupRepository = Depends(get_group_repository),
) -> GroupService:
    return GroupService(groups)


async def get_post_service(posts: PostRepository = Depends(get_post_repository)) -> PostService:
    return PostService(posts)


async def get_link_service(
    links: LinkRepository = Depends(get_link_repository),
    campaigns: CampaignRepository = Depends(get_campaign_repository),
) -> LinkService:
    return LinkService(links, campaigns)


async def get_campaign_service(
    campaigns: CampaignRepository = Depends(get_campaign_repository),
    links: LinkRepository = Depends(get_link_repository),
) -> CampaignService:
    return CampaignService(campaigns, links)


async def get_message_service(
    conversations: ConversationRepository = Depends(get_conversation_repository),
    users: UserRepository = Depends(get_user_repository),
) -> MessageService:
    return MessageService(conversations, users)


def get_file_storage() -> FileStorage:
    settings = get_settings()
    return FileStorage(settings.uploads_dir, max_file_size=settings.max_upload_bytes)


async def get_upload_service(
    storage: FileStorage = Depends(get_file_storage),
    users: UserRepository = Depends(get_user_repository),
    posts: PostRepository = Depends(get_post_repository),
) -> UploadService:
    return UploadService(storage, users, posts)


async def get_current_user(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """
    Resolve the caller from the Bearer access token.

    Raises:
        AuthError: Missing, invalid or expired token
        NotFoundError: Token subject no longer exists
    """
    token = extract_bearer_token(request)
    if not token:
        raise AuthError("Not authenticated")
    return await auth_service.get_user_from_token(token)
