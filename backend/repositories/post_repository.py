"""
Post repository for database operations.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, selectinload

from repositories.base import LIKE_ESCAPE, BaseRepository, contains_pattern
from repositories.db_models import Post, PostTag, PostVisibility


class PostSort:
    CREATED_AT = "createdAt"
    POPULARITY = "popularity"


class PostRepository(BaseRepository[Post]):
    """
    Repository for Post entity operations.
    """

    def __init__(self, db: Session):
        super().__init__(Post, db)

    def _listing(self) -> Query:
        return self.db.query(Post).options(
            selectinload(Post.author),
            selectinload(Post.post_tags),
            selectinload(Post.comments),
        )

    def _public(self) -> Query:
        return self._listing().filter(
            Post.is_active.is_(True), Post.visibility == PostVisibility.PUBLIC
        )

    @staticmethod
    def _ordered(query: Query, sort_by: str) -> Query:
        if sort_by == PostSort.POPULARITY:
            return query.order_by(
                (Post.up_vote - Post.down_vote).desc(), Post.created_at.desc()
            )
        return query.order_by(Post.created_at.desc(), Post.id.desc())

    def list_public(
        self, skip: int, limit: int, sort_by: str = PostSort.CREATED_AT
    ) -> tuple[List[Post], int]:
        """
        Get active public posts.

        Args:
            skip: Number of records to skip
            limit: Maximum number of records to return
            sort_by: "createdAt" (newest first) or "popularity"
                (vote difference, then newest)

        Returns:
            Tuple of (posts, total)
        """
        return self.paginate(self._ordered(self._public(), sort_by), skip, limit)

    def list_by_author(
        self, author_id: int, skip: int, limit: int
    ) -> tuple[List[Post], int]:
        query = self._listing().filter(
            Post.author_id == author_id, Post.is_active.is_(True)
        )
        return self.paginate(self._ordered(query, PostSort.CREATED_AT), skip, limit)

    def recent_public_by_author(self, author_id: int, limit: int) -> List[Post]:
        return (
            self._ordered(
                self._public().filter(Post.author_id == author_id),
                PostSort.CREATED_AT,
            )
            .limit(limit)
            .all()
        )

    def count_active_by_author(self, author_id: int) -> int:
        return (
            self.db.query(Post)
            .filter(Post.author_id == author_id, Post.is_active.is_(True))
            .count()
        )

    def search(
        self,
        term: Optional[str],
        tags: Optional[List[str]],
        skip: int,
        limit: int,
    ) -> tuple[List[Post], int]:
        """
        Search active public posts.

        A post matches when it carries any of ``tags`` and, if ``term`` is
        given, its title, description or one of its tags contains ``term``
        (case-insensitive).

        Returns:
            Tuple of (posts, total), newest first
        """
        query = self._public()
        if tags:
            query = query.filter(Post.post_tags.any(PostTag.name.in_(tags)))
        if term:
            pattern = contains_pattern(term)
            query = query.filter(
                or_(
                    Post.title.ilike(pattern, escape=LIKE_ESCAPE),
                    Post.description.ilike(pattern, escape=LIKE_ESCAPE),
                    Post.post_tags.any(
                        PostTag.name.ilike(pattern, escape=LIKE_ESCAPE)
                    ),
                )
            )
        return self.paginate(self._ordered(query, PostSort.CREATED_AT), skip, limit)

    def list_by_tag(self, name: str, skip: int, limit: int) -> tuple[List[Post], int]:
        query = self._public().filter(Post.post_tags.any(PostTag.name == name))
        return self.paginate(self._ordered(query, PostSort.CREATED_AT), skip, limit)

    def count_created_since(self, since: datetime) -> int:
        return self.db.query(Post).filter(Post.created_at >= since).count()

    def created_dates_since(self, since: datetime) -> List[datetime]:
        rows = self.db.query(Post.created_at).filter(Post.created_at >= since).all()
        return [row[0] for row in rows]

    def engagement_totals(self) -> tuple[int, int, int]:
        """
        Sum views and votes over active posts.

        Returns:
            Tuple of (views, up votes, down votes)
        """
        views, up, down = (
            self.db.query(
                func.coalesce(func.sum(Post.views), 0),
                func.coalesce(func.sum(Post.up_vote), 0),
                func.coalesce(func.sum(Post.down_vote), 0),
            )
            .filter(Post.is_active.is_(True))
            .one()
        )
        return int(views), int(up), int(down)

    def active_tag_usage(self) -> dict[str, int]:
        """Number of active posts carrying each tag name."""
        rows = (
            self.db.query(PostTag.name, func.count(PostTag.id))
            .join(Post, Post.id == PostTag.post_id)
            .filter(Post.is_active.is_(True))
            .group_by(PostTag.name)
            .all()
        )
        return {name: int(count) for name, count in rows}
