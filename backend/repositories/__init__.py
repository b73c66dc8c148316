"""
Repository pattern implementation for data access layer.
"""

from .announcement_repository import AnnouncementRepository
from .base import BaseRepository
from .comment_repository import CommentRepository
from .post_repository import PostRepository
from .search_repository import SearchRepository
from .tag_repository import TagRepository
from .user_repository import UserRepository

__all__ = [
    "AnnouncementRepository",
    "BaseRepository",
    "CommentRepository",
    "PostRepository",
    "SearchRepository",
    "TagRepository",
    "UserRepository",
]
