"""
Announcement repository for database operations.
"""

from datetime import datetime
from typing import List

from sqlalchemy import case, or_, update
from sqlalchemy.orm import Query, Session, selectinload

from repositories.base import BaseRepository
from repositories.db_models import (
    Announcement,
    AnnouncementPriority,
    TargetAudience,
)

PRIORITY_RANK = {
    AnnouncementPriority.URGENT: 4,
    AnnouncementPriority.HIGH: 3,
    AnnouncementPriority.MEDIUM: 2,
    AnnouncementPriority.LOW: 1,
}


class AnnouncementStatusFilter:
    ALL = "all"
    ACTIVE = "active"
    EXPIRED = "expired"
    INACTIVE = "inactive"


class AnnouncementRepository(BaseRepository[Announcement]):
    """
    Repository for Announcement entity operations.
    """

    def __init__(self, db: Session):
        super().__init__(Announcement, db)

    def _base(self) -> Query:
        return self.db.query(Announcement).options(selectinload(Announcement.author))

    @staticmethod
    def _ordered(query: Query) -> Query:
        """Pinned first, then by priority rank, then newest."""
        rank = case(
            *[
                (Announcement.priority == priority, value)
                for priority, value in PRIORITY_RANK.items()
            ],
            else_=0,
        )
        return query.order_by(
            Announcement.is_pinned.desc(),
            rank.desc(),
            Announcement.created_at.desc(),
            Announcement.id.desc(),
        )

    @staticmethod
    def _not_expired(now: datetime):  # type: ignore[no-untyped-def]
        return or_(Announcement.expires_at.is_(None), Announcement.expires_at > now)

    def _current_query(self, audiences: List[TargetAudience], now: datetime) -> Query:
        return self._base().filter(
            Announcement.is_active.is_(True),
            self._not_expired(now),
            Announcement.target_audience.in_(audiences),
        )

    def list_current(
        self, audiences: List[TargetAudience], now: datetime, skip: int, limit: int
    ) -> tuple[List[Announcement], int]:
        """
        Current announcements for the given audiences.

        Returns:
            Tuple of (announcements, total)
        """
        query = self._ordered(self._current_query(audiences, now))
        return self.paginate(query, skip, limit)

    def count_current(self, audiences: List[TargetAudience], now: datetime) -> int:
        return self._current_query(audiences, now).order_by(None).count()

    def list_for_admin(
        self, status: str, now: datetime, skip: int, limit: int
    ) -> tuple[List[Announcement], int]:
        """
        Page through every announcement, filtered by lifecycle state.

        Args:
            status: "all", "active" (current), "expired" or "inactive"
        """
        query = self._base()
        if status == AnnouncementStatusFilter.ACTIVE:
            query = query.filter(
                Announcement.is_active.is_(True), self._not_expired(now)
            )
        elif status == AnnouncementStatusFilter.EXPIRED:
            query = query.filter(
                Announcement.expires_at.is_not(None), Announcement.expires_at <= now
            )
        elif status == AnnouncementStatusFilter.INACTIVE:
            query = query.filter(Announcement.is_active.is_(False))
        return self.paginate(self._ordered(query), skip, limit)

    def deactivate_expired(self, now: datetime) -> int:
        """
        Deactivate active announcements whose expiry has passed.

        Returns:
            Number of announcements deactivated
        """
        result = self.db.execute(
            update(Announcement)
            .where(
                Announcement.is_active.is_(True),
                Announcement.expires_at.is_not(None),
                Announcement.expires_at <= now,
            )
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)
