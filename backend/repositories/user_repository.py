"""
User repository for database operations.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from repositories.base import LIKE_ESCAPE, BaseRepository, contains_pattern
from repositories.db_models import MembershipTier, User, UserRole


class UserRepository(BaseRepository[User]):
    """
    Repository for User entity operations.
    """

    def __init__(self, db: Session):
        super().__init__(User, db)

    def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address.

        Args:
            email: Email address (compared lowercase)

        Returns:
            User if found, None otherwise
        """
        return (
            self.db.query(User).filter(User.email == email.strip().lower()).first()
        )

    def search_active(
        self, search: Optional[str], skip: int, limit: int
    ) -> tuple[List[User], int]:
        """
        Page through active users, optionally filtered by name or email.

        Args:
            search: Case-insensitive substring of name or email
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (users, total)
        """
        query = self.db.query(User).filter(User.is_active.is_(True))
        if search:
            pattern = contains_pattern(search)
            query = query.filter(
                or_(
                    User.name.ilike(pattern, escape=LIKE_ESCAPE),
                    User.email.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        query = query.order_by(User.created_at.desc(), User.id.desc())
        return self.paginate(query, skip, limit)

    def count_admins(self) -> int:
        return self.db.query(User).filter(User.role == UserRole.ADMIN).count()

    def count_gold(self, now: datetime) -> int:
        """Count users whose gold membership has not lapsed."""
        return (
            self.db.query(User)
            .filter(
                User.membership == MembershipTier.GOLD,
                or_(User.membership_expiry.is_(None), User.membership_expiry > now),
            )
            .count()
        )

    def count_created_since(self, since: datetime) -> int:
        return self.db.query(User).filter(User.created_at >= since).count()

    def created_dates_since(self, since: datetime) -> List[datetime]:
        rows = self.db.query(User.created_at).filter(User.created_at >= since).all()
        return [row[0] for row in rows]

    def count_registrations_by_month(self, since: datetime) -> List[tuple[int, int, int]]:
        """
        Registrations per calendar month.

        Returns:
            List of (year, month, count) tuples, oldest month first
        """
        year = func.extract("year", User.created_at)
        month = func.extract("month", User.created_at)
        rows = (
            self.db.query(year, month, func.count(User.id))
            .filter(User.created_at >= since)
            .group_by(year, month)
            .order_by(year, month)
            .all()
        )
        return [(int(y), int(m), int(c)) for y, m, c in rows]
