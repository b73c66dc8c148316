"""
Search term bookkeeping.

Every post search is recorded by normalized term so that the most repeated
recent searches can be suggested to other users.
"""

from datetime import timedelta
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.time_utils import days_ago, utc_now
from models.config import settings
from repositories.search_repository import SearchRepository

MAX_TERM_LENGTH = 100


class SearchService:
    """Service for recording and summarizing searches."""

    @staticmethod
    def normalize_term(term: str) -> str:
        return " ".join(term.lower().split())[:MAX_TERM_LENGTH]

    @staticmethod
    def record_search(
        db: Session,
        term: str,
        user_id: Optional[int] = None,
        result_count: int = 0,
    ) -> Optional[db_models.Search]:
        """
        Count one more search for ``term``.

        Args:
            db: Database session
            term: Raw search term as typed
            user_id: Searching user, if signed in
            result_count: Number of posts the search returned

        Returns:
            The upserted search record, or None for a blank term
        """
        normalized = SearchService.normalize_term(term)
        if not normalized:
            return None

        repo = SearchRepository(db)
        now = utc_now()
        search = repo.get_by_normalized_term(normalized)
        if search is None:
            search = db_models.Search(
                term=term.strip()[:MAX_TERM_LENGTH],
                normalized_term=normalized,
                search_count=1,
                last_searched=now,
                result_count=result_count,
            )
            repo.add(search)
        else:
            search.search_count += 1
            search.last_searched = now
            search.result_count = result_count
            search.is_active = True

        if user_id is not None:
            search.searched_by.append(
                db_models.SearchHit(user_id=user_id, searched_at=now)
            )

        repo.commit()
        return search

    @staticmethod
    def get_popular_searches(
        db: Session,
        limit: Optional[int] = None,
        time_frame_days: Optional[int] = None,
    ) -> list[db_models.Search]:
        """Most repeated searches within the time frame (30 days by default)."""
        days = time_frame_days or settings.POPULAR_SEARCH_WINDOW_DAYS
        return SearchRepository(db).get_popular(
            since=utc_now() - timedelta(days=days),
            min_count=settings.POPULAR_SEARCH_MIN_COUNT,
            limit=limit or settings.POPULAR_SEARCH_LIMIT,
        )

    @staticmethod
    def get_recent_searches(db: Session, limit: int = 10) -> list[db_models.Search]:
        return SearchRepository(db).get_recent(limit)

    @staticmethod
    def cleanup_old_searches(db: Session, days: Optional[int] = None) -> int:
        """
        Purge searches that were neither recent nor popular.

        Returns:
            Number of search records deleted
        """
        repo = SearchRepository(db)
        deleted = repo.delete_stale(
            cutoff=days_ago(days or settings.SEARCH_RETENTION_DAYS),
            keep_count=settings.SEARCH_RETENTION_KEEP_COUNT,
        )
        repo.commit()
        if deleted:
            logger.info(f"Deleted {deleted} stale search records")
        return deleted
