"""
Comment repository for database operations.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Query, Session, selectinload

from repositories.base import BaseRepository
from repositories.db_models import (
    Comment,
    CommentReport,
    ModerationStatus,
    ReportStatus,
)

# Moderation states shown to readers of a post
VISIBLE_STATUSES = (ModerationStatus.APPROVED, ModerationStatus.PENDING)


class CommentRepository(BaseRepository[Comment]):
    """
    Repository for Comment entity operations.
    """

    def __init__(self, db: Session):
        super().__init__(Comment, db)

    def _with_relations(self) -> Query:
        return self.db.query(Comment).options(
            selectinload(Comment.author),
            selectinload(Comment.post),
            selectinload(Comment.reports).selectinload(CommentReport.reporter),
        )

    def list_visible_for_post(
        self, post_id: int, skip: int, limit: int
    ) -> tuple[List[Comment], int]:
        """
        Active, non-moderated-away comments of a post, oldest first.

        Returns:
            Tuple of (comments, total)
        """
        query = (
            self._with_relations()
            .filter(
                Comment.post_id == post_id,
                Comment.is_active.is_(True),
                Comment.moderation_status.in_(VISIBLE_STATUSES),
            )
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        return self.paginate(query, skip, limit)

    def list_active_for_post(self, post_id: int) -> List[Comment]:
        """All active comments of a post regardless of moderation, newest first."""
        return (
            self._with_relations()
            .filter(Comment.post_id == post_id, Comment.is_active.is_(True))
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .all()
        )

    def list_by_author(
        self, author_id: int, skip: int, limit: int
    ) -> tuple[List[Comment], int]:
        query = (
            self._with_relations()
            .filter(Comment.author_id == author_id, Comment.is_active.is_(True))
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
        return self.paginate(query, skip, limit)

    def list_reported(
        self, status: Optional[ReportStatus], skip: int, limit: int
    ) -> tuple[List[Comment], int]:
        """
        Comments with at least one report.

        Args:
            status: Only comments with a report in this status; None for all

        Returns:
            Tuple of (comments, total), most recently created first
        """
        query = self._with_relations().filter(Comment.is_reported.is_(True))
        if status is not None:
            query = query.filter(Comment.reports.any(CommentReport.status == status))
        query = query.order_by(Comment.created_at.desc(), Comment.id.desc())
        return self.paginate(query, skip, limit)

    def get_with_reports(self, comment_id: int) -> Optional[Comment]:
        return self._with_relations().filter(Comment.id == comment_id).first()

    def get_many_with_reports(self, comment_ids: List[int]) -> List[Comment]:
        if not comment_ids:
            return []
        return self._with_relations().filter(Comment.id.in_(comment_ids)).all()

    def count_by_author(self, author_id: int) -> int:
        return (
            self.db.query(Comment)
            .filter(Comment.author_id == author_id, Comment.is_active.is_(True))
            .count()
        )

    def count_reported(self) -> int:
        return self.db.query(Comment).filter(Comment.is_reported.is_(True)).count()

    def count_by_moderation_status(self, status: ModerationStatus) -> int:
        return (
            self.db.query(Comment).filter(Comment.moderation_status == status).count()
        )

    def count_pending_reports(self) -> int:
        return (
            self.db.query(CommentReport)
            .filter(CommentReport.status == ReportStatus.PENDING)
            .count()
        )

    def count_created_since(self, since: datetime) -> int:
        return self.db.query(Comment).filter(Comment.created_at >= since).count()

    def created_dates_since(self, since: datetime) -> List[datetime]:
        rows = (
            self.db.query(Comment.created_at).filter(Comment.created_at >= since).all()
        )
        return [row[0] for row in rows]
