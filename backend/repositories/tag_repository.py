"""
Tag repository for database operations.
"""

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from repositories.base import LIKE_ESCAPE, BaseRepository, contains_pattern
from repositories.db_models import Tag


class TagSort:
    USAGE_COUNT = "usageCount"
    NAME = "name"
    CREATED_AT = "createdAt"


class TagRepository(BaseRepository[Tag]):
    """
    Repository for Tag entity operations.
    """

    def __init__(self, db: Session):
        super().__init__(Tag, db)

    def get_by_name(self, name: str) -> Optional[Tag]:
        """
        Get tag by normalized name.

        Args:
            name: Tag name (will be normalized to lowercase)

        Returns:
            Tag if found, None otherwise
        """
        normalized_name = name.lower().strip()
        return self.db.query(Tag).filter(Tag.name == normalized_name).first()

    def get_by_names(self, names: List[str]) -> List[Tag]:
        if not names:
            return []
        return self.db.query(Tag).filter(Tag.name.in_(names)).all()

    def list_active(
        self,
        search: Optional[str],
        sort_by: str,
        skip: int,
        limit: int,
    ) -> tuple[List[Tag], int]:
        """
        Page through active tags.

        Args:
            search: Case-insensitive substring of name or display name
            sort_by: "usageCount" (default), "name" or "createdAt"
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (tags, total)
        """
        query = self.db.query(Tag).filter(Tag.is_active.is_(True))
        if search:
            query = query.filter(self._matches(search))

        if sort_by == TagSort.NAME:
            query = query.order_by(Tag.name.asc())
        elif sort_by == TagSort.CREATED_AT:
            query = query.order_by(Tag.created_at.desc(), Tag.id.desc())
        else:
            query = query.order_by(Tag.usage_count.desc(), Tag.created_at.desc())
        return self.paginate(query, skip, limit)

    def get_popular(self, limit: int) -> List[Tag]:
        return (
            self.db.query(Tag)
            .filter(Tag.is_active.is_(True))
            .order_by(Tag.usage_count.desc(), Tag.created_at.desc())
            .limit(limit)
            .all()
        )

    def search_tags(self, query: str, limit: int = 10) -> List[Tag]:
        """
        Search active tags by name or display name (for autocomplete).

        Args:
            query: Search query
            limit: Maximum results to return

        Returns:
            List of matching tags, most used first
        """
        return (
            self.db.query(Tag)
            .filter(Tag.is_active.is_(True), self._matches(query))
            .order_by(Tag.usage_count.desc())
            .limit(limit)
            .all()
        )

    def all_tags(self) -> List[Tag]:
        return self.db.query(Tag).all()

    @staticmethod
    def _matches(text: str):  # type: ignore[no-untyped-def]
        pattern = contains_pattern(text)
        return or_(
            Tag.name.ilike(pattern, escape=LIKE_ESCAPE),
            Tag.display_name.ilike(pattern, escape=LIKE_ESCAPE),
        )
