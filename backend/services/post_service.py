"""
Post service for business logic.
"""

from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.sanitization import sanitize_plain_text
from helpers.time_utils import utc_now
from models.config import settings
from models.exceptions import (
    NotOwnerException,
    PostLimitReachedException,
    PostNotFoundException,
    PrivatePostException,
    ValidationException,
)
from repositories.post_repository import PostRepository
from services import forum_rules
from services.search_service import SearchService
from services.tag_service import TagService


class PostService:
    """Service for post-related business logic."""

    @staticmethod
    def list_posts(
        db: Session, skip: int, limit: int, sort_by: str
    ) -> tuple[list[db_models.Post], int]:
        return PostRepository(db).list_public(skip, limit, sort_by)

    @staticmethod
    def search_posts(
        db: Session,
        term: Optional[str],
        tags: Optional[list[str]],
        skip: int,
        limit: int,
        user: Optional[db_models.User] = None,
    ) -> tuple[list[db_models.Post], int]:
        """
        Search public posts by free text and/or tags, recording the term.

        Raises:
            ValidationException: If neither a term nor tags are given
        """
        term = term.strip() if term else None
        if not term and not tags:
            raise ValidationException("Please provide search term or tags")

        posts, total = PostRepository(db).search(term, tags, skip, limit)
        if term:
            SearchService.record_search(
                db, term, user_id=user.id if user else None, result_count=total
            )
        return posts, total

    @staticmethod
    def get_user_posts(
        db: Session, user: db_models.User, skip: int, limit: int
    ) -> tuple[list[db_models.Post], int]:
        return PostRepository(db).list_by_author(user.id, skip, limit)

    @staticmethod
    def get_post(
        db: Session, post_id: int, viewer: Optional[db_models.User]
    ) -> tuple[db_models.Post, Optional[db_models.VoteType]]:
        """
        Read a post and count the view.

        Returns:
            Tuple of (post, the viewer's current vote or None)

        Raises:
            PostNotFoundException: If the post is missing or deleted
            PrivatePostException: If the post is private and not the viewer's
        """
        repo = PostRepository(db)
        post = repo.get_active_by_id(post_id)
        if post is None:
            raise PostNotFoundException()
        if not forum_rules.can_view_post(post, viewer):
            raise PrivatePostException()

        post.views += 1
        repo.commit()
        repo.refresh(post)

        user_vote = forum_rules.get_user_vote(post, viewer.id) if viewer else None
        return post, user_vote

    @staticmethod
    def get_can_post_status(db: Session, user: db_models.User) -> schemas.CanPostStatus:
        current = PostRepository(db).count_active_by_author(user.id)
        gold = forum_rules.has_gold_membership(user)
        allowed = forum_rules.can_post(user, current)
        return schemas.CanPostStatus(
            can_post=allowed,
            current_posts=current,
            post_limit="unlimited" if gold else settings.BRONZE_POST_LIMIT,
            membership=forum_rules.effective_membership(user),
            reason=None if allowed else "Post limit reached",
        )

    @staticmethod
    def create_post(
        db: Session, data: schemas.PostCreate, user: db_models.User
    ) -> db_models.Post:
        """
        Create a post and bump the usage of its registered tags.

        Raises:
            PostLimitReachedException: If the author has no gold membership
                and already has the maximum number of active posts
            ValidationException: If title or description is empty once
                sanitized
        """
        repo = PostRepository(db)
        current = repo.count_active_by_author(user.id)
        if not forum_rules.can_post(user, current):
            logger.info(
                f"User {user.id} hit the post limit with {current} active posts"
            )
            raise PostLimitReachedException(settings.BRONZE_POST_LIMIT)

        post = db_models.Post(
            title=PostService._clean(data.title, "Title"),
            description=PostService._clean(data.description, "Description"),
            author_id=user.id,
            visibility=data.visibility,
        )
        PostService._retag(post, data.tags)
        repo.add(post)
        TagService.adjust_usage(db, added=data.tags)
        repo.commit()
        repo.refresh(post)

        logger.info(f"Post {post.id} created by user {user.id}")
        return post

    @staticmethod
    def update_post(
        db: Session, post_id: int, data: schemas.PostUpdate, user: db_models.User
    ) -> db_models.Post:
        repo = PostRepository(db)
        post = PostService._get_modifiable(repo, post_id, user)

        if data.title is not None:
            post.title = PostService._clean(data.title, "Title")
        if data.description is not None:
            post.description = PostService._clean(data.description, "Description")
        if data.visibility is not None:
            post.visibility = data.visibility
        if data.tags is not None:
            removed, added = PostService._retag(post, data.tags)
            TagService.adjust_usage(db, removed=removed, added=added)

        post.last_activity = utc_now()
        repo.commit()
        repo.refresh(post)
        return post

    @staticmethod
    def delete_post(db: Session, post_id: int, user: db_models.User) -> None:
        """Soft delete a post and release its tag usage."""
        repo = PostRepository(db)
        post = PostService._get_modifiable(repo, post_id, user)

        post.is_active = False
        TagService.adjust_usage(db, removed=post.tags)
        repo.commit()
        logger.info(f"Post {post.id} deleted by user {user.id}")

    @staticmethod
    def vote_on_post(
        db: Session, post_id: int, vote_type: str, user: db_models.User
    ) -> schemas.VoteResult:
        """
        Vote on a post; repeating the current vote retracts it.

        Raises:
            InvalidVoteTypeException: If vote_type is not "up" or "down"
            PostNotFoundException: If the post is missing or deleted
            PrivatePostException: If the post is private and not the user's
        """
        parsed = forum_rules.parse_vote_type(vote_type)
        repo = PostRepository(db)
        post = repo.get_active_by_id(post_id)
        if post is None:
            raise PostNotFoundException()
        if not forum_rules.can_view_post(post, user):
            raise PrivatePostException()

        user_vote = forum_rules.toggle_vote(post, user.id, parsed)
        repo.commit()
        repo.refresh(post)

        logger.info(
            f"User {user.id} vote on post {post.id}: "
            f"{user_vote.value if user_vote else 'retracted'}"
        )
        return schemas.VoteResult(
            up_vote=post.up_vote,
            down_vote=post.down_vote,
            vote_difference=post.vote_difference,
            user_vote=user_vote,
        )

    @staticmethod
    def get_recent_public_posts(
        db: Session, author_id: int, limit: int
    ) -> list[db_models.Post]:
        return PostRepository(db).recent_public_by_author(author_id, limit)

    @staticmethod
    def _get_modifiable(
        repo: PostRepository, post_id: int, user: db_models.User
    ) -> db_models.Post:
        post = repo.get_active_by_id(post_id)
        if post is None:
            raise PostNotFoundException()
        if not forum_rules.can_modify(post.author_id, user):
            raise NotOwnerException("post")
        return post

    @staticmethod
    def _clean(value: str, field: str) -> str:
        cleaned = sanitize_plain_text(value)
        if not cleaned:
            raise ValidationException(f"{field} is required")
        return cleaned

    @staticmethod
    def _retag(post: db_models.Post, names: list[str]) -> tuple[list[str], list[str]]:
        """
        Replace the post's tags with ``names`` (already normalized).

        Rows for names kept across the change are reused, so the
        (post, name) unique constraint holds within one flush.

        Returns:
            Tuple of (removed names, added names)
        """
        current = {post_tag.name: post_tag for post_tag in post.post_tags}
        removed = [name for name in current if name not in names]
        added = [name for name in names if name not in current]

        new_tags = []
        for position, name in enumerate(names):
            post_tag = current.get(name) or db_models.PostTag(name=name)
            post_tag.position = position
            new_tags.append(post_tag)
        post.post_tags[:] = new_tags
        return removed, added
