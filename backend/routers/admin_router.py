"""
Admin router: dashboard statistics and comment moderation.

Every endpoint requires the admin role.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import LimitParam, PageParam, offset_for, paginated
from repositories.database import get_db
from services.dashboard_service import DashboardService
from services.moderation_service import ModerationService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard", response_model=schemas.ApiResponse[schemas.Dashboard])
def get_dashboard(
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    return {"success": True, "data": DashboardService.get_dashboard(db)}


@router.get("/profile", response_model=schemas.ApiResponse[schemas.AdminProfile])
def get_admin_profile(
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    return {"success": True, "data": DashboardService.get_admin_profile(db, current_user)}


@router.get(
    "/system-overview", response_model=schemas.ApiResponse[schemas.SystemOverview]
)
def get_system_overview(
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    return {"success": True, "data": DashboardService.get_system_overview(db)}


@router.get(
    "/reported-comments",
    response_model=schemas.PaginatedResponse[schemas.CommentWithReports],
)
def get_reported_comments(
    status_filter: str = Query("all", alias="status"),
    page: PageParam = 1,
    limit: LimitParam = 20,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    """
    Reported comments, optionally only those with a report in ``status``.

    Domain exceptions are caught by centralized exception handlers.
    """
    comments, total = ModerationService.get_reported_comments(
        db, status_filter, offset_for(page, limit), limit
    )
    return paginated(comments, page, limit, total)


@router.put(
    "/reported-comments/{comment_id}/action",
    response_model=schemas.ApiResponse[schemas.ModerationResult],
)
def moderate_comment(
    comment_id: int,
    data: schemas.ModerationActionRequest,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    """Approve, flag or remove a reported comment."""
    comment = ModerationService.take_action(
        db, comment_id, data.action, current_user, report_id=data.report_id
    )
    return {
        "success": True,
        "message": f"Comment {data.action} action completed",
        "data": {"comment": comment, "action": data.action},
    }


@router.post(
    "/reported-comments/bulk-action",
    response_model=schemas.ApiResponse[schemas.BulkActionResult],
)
def bulk_moderate_comments(
    data: schemas.BulkActionRequest,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    modified = ModerationService.bulk_action(
        db, data.comment_ids, data.action, current_user
    )
    return {
        "success": True,
        "message": f"Bulk {data.action} action completed",
        "data": {"action": data.action, "modified_count": modified},
    }
