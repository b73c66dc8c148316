"""
Nightly maintenance.

Purges stale search terms, deactivates expired announcements and reconciles
tag usage counters. Every step is idempotent, so a rerun after a failure is
safe.
"""

from typing import Any

from loguru import logger
from sqlalchemy.orm import Session

from services.announcement_service import AnnouncementService
from services.search_service import SearchService
from services.tag_service import TagService


class RetentionService:
    """
    Service for periodic data upkeep.

    Should be run via scheduled task (background scheduler).
    """

    @staticmethod
    def run_all_jobs(db: Session) -> dict[str, Any]:
        """
        Run all maintenance jobs in order.

        Returns:
            Summary of the work each job did
        """
        logger.info("Starting maintenance jobs")

        results: dict[str, Any] = {
            "deleted_searches": SearchService.cleanup_old_searches(db),
            "expired_announcements": AnnouncementService.expire_due(db),
        }
        reconcile = TagService.reconcile_usage_counts(db)
        results["tags_checked"] = reconcile.tags_checked
        results["tags_updated"] = reconcile.tags_updated

        logger.info(f"Maintenance complete: {results}")
        return results
