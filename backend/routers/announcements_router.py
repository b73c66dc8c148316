"""
Announcements router.

Readers see current announcements for their audience; admins manage them.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import LimitParam, PageParam, offset_for, paginated
from repositories.announcement_repository import AnnouncementStatusFilter
from repositories.database import get_db
from services.announcement_service import AnnouncementService

router = APIRouter(prefix="/announcements", tags=["announcements"])


@router.get("/", response_model=schemas.PaginatedResponse[schemas.Announcement])
def list_announcements(
    page: PageParam = 1,
    limit: LimitParam = 10,
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
    db: Session = Depends(get_db),
) -> dict:
    """Current announcements, pinned first, then by priority, then newest."""
    items, total = AnnouncementService.list_current(
        db, current_user, offset_for(page, limit), limit
    )
    return paginated(items, page, limit, total)


@router.get("/count", response_model=schemas.ApiResponse[schemas.AnnouncementCount])
def count_announcements(
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
    db: Session = Depends(get_db),
) -> dict:
    count = AnnouncementService.count_current(db, current_user)
    return {"success": True, "data": {"count": count}}


@router.get("/admin/all", response_model=schemas.PaginatedResponse[schemas.Announcement])
def list_all_announcements(
    status_filter: str = Query(
        AnnouncementStatusFilter.ALL,
        alias="status",
        pattern="^(all|active|expired|inactive)$",
    ),
    page: PageParam = 1,
    limit: LimitParam = 20,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    """Every announcement filtered by lifecycle state. Admin only."""
    items, total = AnnouncementService.list_for_admin(
        db, status_filter, offset_for(page, limit), limit
    )
    return paginated(items, page, limit, total)


@router.get("/{announcement_id}", response_model=schemas.ApiResponse[schemas.Announcement])
def get_announcement(
    announcement_id: int,
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
    db: Session = Depends(get_db),
) -> dict:
    """
    Read a current announcement and count the view.

    Domain exceptions are caught by centralized exception handlers.
    """
    announcement = AnnouncementService.get_announcement(db, announcement_id, current_user)
    return {"success": True, "data": announcement}


@router.post(
    "/",
    response_model=schemas.ApiResponse[schemas.Announcement],
    status_code=status.HTTP_201_CREATED,
)
def create_announcement(
    data: schemas.AnnouncementCreate,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    announcement = AnnouncementService.create_announcement(db, data, current_user)
    return {
        "success": True,
        "message": "Announcement created successfully",
        "data": announcement,
    }


@router.put("/{announcement_id}", response_model=schemas.ApiResponse[schemas.Announcement])
def update_announcement(
    announcement_id: int,
    data: schemas.AnnouncementUpdate,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    announcement = AnnouncementService.update_announcement(db, announcement_id, data)
    return {
        "success": True,
        "message": "Announcement updated successfully",
        "data": announcement,
    }


@router.delete("/{announcement_id}", response_model=schemas.ApiResponse[None])
def delete_announcement(
    announcement_id: int,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    AnnouncementService.delete_announcement(db, announcement_id)
    return {"success": True, "message": "Announcement deleted successfully"}


@router.put(
    "/{announcement_id}/toggle-pin",
    response_model=schemas.ApiResponse[schemas.Announcement],
)
def toggle_pin(
    announcement_id: int,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    announcement = AnnouncementService.toggle_pin(db, announcement_id)
    message = "Announcement pinned" if announcement.is_pinned else "Announcement unpinned"
    return {"success": True, "message": message, "data": announcement}
