"""
Comments router for comment-related endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import LimitParam, PageParam, offset_for, paginated
from repositories.database import get_db
from services.comment_service import CommentService

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/post/{post_id}", response_model=schemas.PaginatedResponse[schemas.Comment])
def get_post_comments(
    post_id: int,
    page: PageParam = 1,
    limit: LimitParam = 20,
    db: Session = Depends(get_db),
) -> dict:
    """
    Get the visible comments of a post, oldest first.
    Public endpoint - no authentication required.
    """
    comments, total = CommentService.get_comments_for_post(
        db, post_id, offset_for(page, limit), limit
    )
    return paginated(comments, page, limit, total)


@router.post(
    "/",
    response_model=schemas.ApiResponse[schemas.Comment],
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    data: schemas.CommentCreate,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    comment = CommentService.create_comment(db, data.post_id, data.content, current_user)
    return {"success": True, "message": "Comment added successfully", "data": comment}


@router.get("/my-comments", response_model=schemas.PaginatedResponse[schemas.Comment])
def my_comments(
    page: PageParam = 1,
    limit: LimitParam = 10,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    comments, total = CommentService.get_user_comments(
        db, current_user, offset_for(page, limit), limit
    )
    return paginated(comments, page, limit, total)


@router.get(
    "/manage/{post_id}",
    response_model=schemas.ApiResponse[list[schemas.CommentWithReports]],
)
def manage_post_comments(
    post_id: int,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    """
    All active comments of a post with their reports.
    Only the post's author or an admin.
    """
    comments = CommentService.get_comments_for_management(db, post_id, current_user)
    return {"success": True, "data": comments}


@router.put("/{comment_id}", response_model=schemas.ApiResponse[schemas.Comment])
def update_comment(
    comment_id: int,
    data: schemas.CommentUpdate,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    comment = CommentService.update_comment(db, comment_id, data.content, current_user)
    return {"success": True, "message": "Comment updated successfully", "data": comment}


@router.delete("/{comment_id}", response_model=schemas.ApiResponse[None])
def delete_comment(
    comment_id: int,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    CommentService.delete_comment(db, comment_id, current_user)
    return {"success": True, "message": "Comment deleted successfully"}


@router.post("/{comment_id}/report", response_model=schemas.ApiResponse[None])
def report_comment(
    comment_id: int,
    data: schemas.ReportRequest,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    """
    Report a comment for moderation. A user reports a comment at most once.

    Domain exceptions are caught by centralized exception handlers.
    """
    CommentService.report_comment(db, comment_id, data.feedback, current_user)
    return {"success": True, "message": "Comment reported successfully"}
