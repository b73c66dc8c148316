"""
Comment service for business logic.
"""

from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.sanitization import sanitize_plain_text
from helpers.time_utils import utc_now
from models.exceptions import (
    CommentNotFoundException,
    NotOwnerException,
    PostNotFoundException,
    PrivatePostException,
    ValidationException,
)
from repositories.comment_repository import CommentRepository
from repositories.post_repository import PostRepository
from services import forum_rules


class CommentService:
    """Service for comment-related business logic."""

    @staticmethod
    def get_comments_for_post(
        db: Session, post_id: int, skip: int, limit: int
    ) -> tuple[list[db_models.Comment], int]:
        """
        Get the visible comments of a post, oldest first.

        Raises:
            PostNotFoundException: If the post is missing or deleted
        """
        if PostRepository(db).get_active_by_id(post_id) is None:
            raise PostNotFoundException()
        return CommentRepository(db).list_visible_for_post(post_id, skip, limit)

    @staticmethod
    def create_comment(
        db: Session, post_id: int, content: str, user: db_models.User
    ) -> db_models.Comment:
        """
        Add a comment to a post.

        Raises:
            PostNotFoundException: If the post is missing or deleted
            PrivatePostException: If the post is private and not the user's
            ValidationException: If the content is empty once sanitized
        """
        post = PostRepository(db).get_active_by_id(post_id)
        if post is None:
            raise PostNotFoundException()
        if not forum_rules.can_view_post(post, user):
            raise PrivatePostException()

        comment = db_models.Comment(
            post_id=post.id,
            author_id=user.id,
            content=CommentService._clean(content),
        )
        post.last_activity = utc_now()

        repo = CommentRepository(db)
        comment = repo.create(comment)
        logger.info(f"Comment {comment.id} added to post {post.id} by user {user.id}")
        return comment

    @staticmethod
    def get_user_comments(
        db: Session, user: db_models.User, skip: int, limit: int
    ) -> tuple[list[db_models.Comment], int]:
        return CommentRepository(db).list_by_author(user.id, skip, limit)

    @staticmethod
    def get_comments_for_management(
        db: Session, post_id: int, user: db_models.User
    ) -> list[db_models.Comment]:
        """
        All active comments of a post with their reports, for its owner.

        Raises:
            PostNotFoundException: If the post is missing or deleted
            NotOwnerException: If the user neither owns the post nor is admin
        """
        post = PostRepository(db).get_active_by_id(post_id)
        if post is None:
            raise PostNotFoundException()
        if not forum_rules.can_modify(post.author_id, user):
            raise NotOwnerException("post")
        return CommentRepository(db).list_active_for_post(post_id)

    @staticmethod
    def update_comment(
        db: Session, comment_id: int, content: str, user: db_models.User
    ) -> db_models.Comment:
        repo = CommentRepository(db)
        comment = CommentService._get_modifiable(repo, comment_id, user)
        comment.content = CommentService._clean(content)
        repo.commit()
        repo.refresh(comment)
        return comment

    @staticmethod
    def delete_comment(db: Session, comment_id: int, user: db_models.User) -> None:
        """Soft delete a comment."""
        repo = CommentRepository(db)
        comment = CommentService._get_modifiable(repo, comment_id, user)
        comment.is_active = False
        repo.commit()
        logger.info(f"Comment {comment.id} deleted by user {user.id}")

    @staticmethod
    def report_comment(
        db: Session, comment_id: int, feedback: Optional[str], user: db_models.User
    ) -> db_models.CommentReport:
        """
        Report a comment for moderation.

        Raises:
            ValidationException: If feedback is missing or unknown, or the
                comment is no longer active
            CommentNotFoundException: If the comment does not exist
            DuplicateReportException: If the user already reported it
        """
        if not feedback:
            raise ValidationException("Please provide feedback for the report")

        repo = CommentRepository(db)
        comment = repo.get_by_id(comment_id)
        if comment is None:
            raise CommentNotFoundException()

        report = forum_rules.add_report(comment, user.id, feedback)
        repo.commit()
        logger.info(f"Comment {comment.id} reported by user {user.id}")
        return report

    @staticmethod
    def _get_modifiable(
        repo: CommentRepository, comment_id: int, user: db_models.User
    ) -> db_models.Comment:
        comment = repo.get_active_by_id(comment_id)
        if comment is None:
            raise CommentNotFoundException()
        if not forum_rules.can_modify(comment.author_id, user):
            raise NotOwnerException("comment")
        return comment

    @staticmethod
    def _clean(content: str) -> str:
        cleaned = sanitize_plain_text(content)
        if not cleaned:
            raise ValidationException("Comment content is required")
        return cleaned
