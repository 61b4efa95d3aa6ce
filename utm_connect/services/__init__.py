"""Business logic services."""

from .auth_service import AuthService, AuthSession, datastore_guard
from .file_service import FileStorage, StoredFile, UploadService
from .friend_service import FriendService
from .group_service import GroupService
from .link_service import CampaignService, LinkService
from .message_service import MessageService
from .post_service import PostService
from .user_service import UserService

__all__ = [
    "AuthService",
    "AuthSession",
    "datastore_guard",
    "CampaignService",
    "FileStorage",
    "FriendService",
    "GroupService",
    "LinkService",
    "MessageService",
    "PostService",
    "StoredFile",
    "UploadService",
    "UserService",
]
