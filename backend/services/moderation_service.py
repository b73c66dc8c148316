"""
Moderation Service - Business logic for reported comments.

Admins review reported comments and apply one of three actions. Each action
sets the comment's moderation status and resolves its reports:

    approve -> comment approved, reports dismissed
    flag    -> comment flagged,  reports reviewed
    remove  -> comment removed (and deactivated), reports resolved
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.exceptions import CommentNotFoundException, ValidationException
from repositories.comment_repository import CommentRepository
from services import forum_rules

ALL_STATUSES = "all"


class ModerationService:
    """Service for comment moderation."""

    @staticmethod
    def get_reported_comments(
        db: Session, status: str, skip: int, limit: int
    ) -> tuple[List[db_models.Comment], int]:
        """
        Page through reported comments.

        Args:
            db: Database session
            status: "all", or a report status that at least one of the
                comment's reports must be in
            skip: Number of records to skip
            limit: Maximum number of records to return

        Raises:
            ValidationException: If status is not recognized
        """
        return CommentRepository(db).list_reported(
            ModerationService._parse_status(status), skip, limit
        )

    @staticmethod
    def take_action(
        db: Session,
        comment_id: int,
        action: str,
        moderator: db_models.User,
        report_id: Optional[int] = None,
    ) -> db_models.Comment:
        """
        Moderate one comment.

        With ``report_id`` only that report is resolved; otherwise all of the
        comment's pending reports are.

        Raises:
            InvalidModerationActionException: If action is not recognized
            CommentNotFoundException: If the comment does not exist
            ReportNotFoundException: If report_id is not one of its reports
        """
        parsed = forum_rules.parse_moderation_action(action)
        repo = CommentRepository(db)
        comment = repo.get_with_reports(comment_id)
        if comment is None:
            raise CommentNotFoundException()

        status = forum_rules.apply_moderation_action(
            comment, parsed, moderator_id=moderator.id, report_id=report_id
        )
        repo.commit()
        repo.refresh(comment)

        logger.info(
            f"Admin {moderator.id} applied '{parsed.value}' to comment {comment.id} "
            f"(status={status.value})"
        )
        return comment

    @staticmethod
    def bulk_action(
        db: Session, comment_ids: List[int], action: str, moderator: db_models.User
    ) -> int:
        """
        Apply one action to many comments in a single transaction.

        Unknown ids are skipped.

        Returns:
            Number of comments modified
        """
        parsed = forum_rules.parse_moderation_action(action)
        repo = CommentRepository(db)
        comments = repo.get_many_with_reports(list(dict.fromkeys(comment_ids)))
        for comment in comments:
            forum_rules.apply_moderation_action(
                comment, parsed, moderator_id=moderator.id
            )
        repo.commit()

        logger.info(
            f"Admin {moderator.id} applied '{parsed.value}' to "
            f"{len(comments)} comments"
        )
        return len(comments)

    @staticmethod
    def _parse_status(status: str) -> Optional[db_models.ReportStatus]:
        if status == ALL_STATUSES:
            return None
        try:
            return db_models.ReportStatus(status)
        except ValueError:
            raise ValidationException(f"Invalid report status: {status}")
