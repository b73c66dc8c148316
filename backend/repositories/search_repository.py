"""
Search term repository for database operations.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from repositories.db_models import Search


class SearchRepository(BaseRepository[Search]):
    """
    Repository for recorded search terms.
    """

    def __init__(self, db: Session):
        super().__init__(Search, db)

    def get_by_normalized_term(self, normalized_term: str) -> Optional[Search]:
        return (
            self.db.query(Search)
            .filter(Search.normalized_term == normalized_term)
            .first()
        )

    def get_popular(self, since: datetime, min_count: int, limit: int) -> List[Search]:
        """
        Terms searched repeatedly since ``since``.

        Returns:
            Active searches with at least ``min_count`` hits, most searched first
        """
        return (
            self.db.query(Search)
            .filter(
                Search.is_active.is_(True),
                Search.last_searched >= since,
                Search.search_count >= min_count,
            )
            .order_by(Search.search_count.desc(), Search.last_searched.desc())
            .limit(limit)
            .all()
        )

    def get_recent(self, limit: int) -> List[Search]:
        return (
            self.db.query(Search)
            .filter(Search.is_active.is_(True))
            .order_by(Search.last_searched.desc())
            .limit(limit)
            .all()
        )

    def delete_stale(self, cutoff: datetime, keep_count: int) -> int:
        """
        Hard-delete searches not repeated since ``cutoff``.

        Searches with at least ``keep_count`` hits are kept.

        Returns:
            Number of searches deleted
        """
        stale_ids = [
            row[0]
            for row in self.db.query(Search.id)
            .filter(Search.last_searched < cutoff, Search.search_count < keep_count)
            .all()
        ]
        if not stale_ids:
            return 0
        # Load and delete through the ORM so search hits cascade
        for search in self.get_many(stale_ids):
            self.db.delete(search)
        return len(stale_ids)
