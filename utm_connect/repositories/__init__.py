"""Repository pattern implementation."""

from .base import BaseRepository
from .campaign_repository import Campaign, CampaignRepository
from .conversation_repository import Conversation, ConversationRepository, Message
from .group_repository import Group, GroupRepository
from .link_repository import Link, LinkAnalytic, LinkRepository
from .post_repository import Comment, Post, PostRepository
from .refresh_token_repository import RefreshToken, RefreshTokenRepository
from .user_repository import User, UserRepository

__all__ = [
    "BaseRepository",
    "Campaign",
    "CampaignRepository",
    "Comment",
    "Conversation",
    "ConversationRepository",
    "Group",
    "GroupRepository",
    "Link",
    "LinkAnalytic",
    "LinkRepository",
    "Message",
    "Post",
    "PostRepository",
    "RefreshToken",
    "RefreshTokenRepository",
    "User",
    "UserRepository",
]
