"""Routes package for UTM Connect web application."""

from .auth import router as auth_router
from .friends import router as friends_router
from .groups import router as groups_router
from .health import router as health_router
from .links import campaigns_router
from .links import router as links_router
from .messages import router as messages_router
from .posts import router as posts_router
from .uploads import router as uploads_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "users_router",
    "friends_router",
    "groups_router",
    "posts_router",
    "messages_router",
    "links_router",
    "campaigns_router",
    "uploads_router",
    "health_router",
]
