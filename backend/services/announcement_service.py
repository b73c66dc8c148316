"""
Announcement service for business logic.

An announcement is current while it is active and not past its expiry.
Readers only ever see current announcements addressed to their audience.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.sanitization import sanitize_plain_text
from helpers.time_utils import ensure_utc, utc_now
from models.exceptions import (
    AnnouncementNotFoundException,
    AudienceRestrictedException,
    ValidationException,
)
from repositories.announcement_repository import AnnouncementRepository
from services import forum_rules


class AnnouncementService:
    """Service for announcement-related business logic."""

    @staticmethod
    def list_current(
        db: Session, viewer: Optional[db_models.User], skip: int, limit: int
    ) -> tuple[List[db_models.Announcement], int]:
        now = utc_now()
        return AnnouncementRepository(db).list_current(
            forum_rules.visible_audiences(viewer, now), now, skip, limit
        )

    @staticmethod
    def count_current(db: Session, viewer: Optional[db_models.User]) -> int:
        now = utc_now()
        return AnnouncementRepository(db).count_current(
            forum_rules.visible_audiences(viewer, now), now
        )

    @staticmethod
    def get_announcement(
        db: Session, announcement_id: int, viewer: Optional[db_models.User]
    ) -> db_models.Announcement:
        """
        Read a current announcement and count the view.

        Raises:
            AnnouncementNotFoundException: If it is missing, inactive or expired
            AudienceRestrictedException: If it targets an audience the viewer
                is not part of
        """
        repo = AnnouncementRepository(db)
        announcement = repo.get_by_id(announcement_id)
        now = utc_now()
        if announcement is None or not forum_rules.is_announcement_current(
            announcement.is_active, announcement.expires_at, now
        ):
            raise AnnouncementNotFoundException()
        if announcement.target_audience not in forum_rules.visible_audiences(
            viewer, now
        ):
            raise AudienceRestrictedException()

        announcement.views += 1
        repo.commit()
        repo.refresh(announcement)
        return announcement

    @staticmethod
    def create_announcement(
        db: Session, data: schemas.AnnouncementCreate, author: db_models.User
    ) -> db_models.Announcement:
        announcement = db_models.Announcement(
            title=AnnouncementService._clean(data.title, "Title"),
            description=AnnouncementService._clean(data.description, "Description"),
            author_id=author.id,
            priority=data.priority,
            type=data.type,
            target_audience=data.target_audience,
            is_pinned=data.is_pinned,
            expires_at=data.expires_at,
        )
        AnnouncementService._expire_if_due(announcement)

        announcement = AnnouncementRepository(db).create(announcement)
        logger.info(f"Announcement {announcement.id} created by admin {author.id}")
        return announcement

    @staticmethod
    def update_announcement(
        db: Session, announcement_id: int, data: schemas.AnnouncementUpdate
    ) -> db_models.Announcement:
        repo = AnnouncementRepository(db)
        announcement = AnnouncementService._get_or_raise(repo, announcement_id)

        if data.title is not None:
            announcement.title = AnnouncementService._clean(data.title, "Title")
        if data.description is not None:
            announcement.description = AnnouncementService._clean(
                data.description, "Description"
            )
        for field in ("priority", "type", "target_audience", "is_pinned", "is_active"):
            value = getattr(data, field)
            if value is not None:
                setattr(announcement, field, value)
        if "expires_at" in data.model_fields_set:
            announcement.expires_at = data.expires_at
        AnnouncementService._expire_if_due(announcement)

        repo.commit()
        repo.refresh(announcement)
        return announcement

    @staticmethod
    def delete_announcement(db: Session, announcement_id: int) -> None:
        """Soft delete an announcement."""
        repo = AnnouncementRepository(db)
        announcement = AnnouncementService._get_or_raise(repo, announcement_id)
        announcement.is_active = False
        repo.commit()
        logger.info(f"Announcement {announcement.id} deactivated")

    @staticmethod
    def toggle_pin(db: Session, announcement_id: int) -> db_models.Announcement:
        repo = AnnouncementRepository(db)
        announcement = AnnouncementService._get_or_raise(repo, announcement_id)
        announcement.is_pinned = not announcement.is_pinned
        repo.commit()
        repo.refresh(announcement)
        return announcement

    @staticmethod
    def list_for_admin(
        db: Session, status: str, skip: int, limit: int
    ) -> tuple[List[db_models.Announcement], int]:
        return AnnouncementRepository(db).list_for_admin(status, utc_now(), skip, limit)

    @staticmethod
    def expire_due(db: Session) -> int:
        """
        Deactivate every active announcement past its expiry.

        Returns:
            Number of announcements deactivated
        """
        repo = AnnouncementRepository(db)
        expired = repo.deactivate_expired(utc_now())
        repo.commit()
        if expired:
            logger.info(f"Deactivated {expired} expired announcements")
        return expired

    @staticmethod
    def _get_or_raise(
        repo: AnnouncementRepository, announcement_id: int
    ) -> db_models.Announcement:
        announcement = repo.get_by_id(announcement_id)
        if announcement is None:
            raise AnnouncementNotFoundException()
        return announcement

    @staticmethod
    def _expire_if_due(announcement: db_models.Announcement) -> None:
        expires_at = ensure_utc(announcement.expires_at)
        if expires_at is not None and expires_at <= utc_now():
            announcement.is_active = False

    @staticmethod
    def _clean(value: str, field: str) -> str:
        cleaned = sanitize_plain_text(value)
        if not cleaned:
            raise ValidationException(f"{field} is required")
        return cleaned
