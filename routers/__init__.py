"""
routers - API Router Package

This package contains FastAPI routers that define API endpoints:
- groups: Group CRUD, likes, visibility and password checks
- posts: Memory CRUD within groups
- comments: Comments on memories
- users: User accounts
- images: Image upload
- badges: Badge catalog
- health: Health check and system status endpoints
"""

from routers.groups import router as groups_router
from routers.posts import router as posts_router
from routers.comments import router as comments_router
from routers.users import router as users_router
from routers.images import router as images_router
from routers.badges import router as badges_router
from routers.health import router as health_router

__all__ = [
    "groups_router",
    "posts_router",
    "comments_router",
    "users_router",
    "images_router",
    "badges_router",
    "health_router",
]
