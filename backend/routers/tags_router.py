"""
Tags router for tag-related endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import LimitParam, PageParam, offset_for, paginated
from repositories.database import get_db
from repositories.tag_repository import TagSort
from services.tag_service import TagService

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("/", response_model=schemas.PaginatedResponse[schemas.Tag])
def list_tags(
    search: Optional[str] = Query(None, max_length=30),
    sort_by: str = Query(
        TagSort.USAGE_COUNT,
        alias="sortBy",
        pattern=f"^({TagSort.USAGE_COUNT}|{TagSort.NAME}|{TagSort.CREATED_AT})$",
    ),
    page: PageParam = 1,
    limit: LimitParam = 50,
    db: Session = Depends(get_db),
) -> dict:
    """
    Get active tags.
    Public endpoint - no authentication required.
    """
    tags, total = TagService.list_tags(
        db, search, sort_by, offset_for(page, limit), limit
    )
    return paginated(tags, page, limit, total)


@router.get("/popular", response_model=schemas.ApiResponse[list[schemas.Tag]])
def get_popular_tags(
    limit: int = Query(10, ge=1, le=50, description="Maximum results"),
    db: Session = Depends(get_db),
) -> dict:
    """Most used active tags."""
    return {"success": True, "data": TagService.get_popular_tags(db, limit)}


@router.get("/search", response_model=schemas.ApiResponse[list[schemas.Tag]])
def search_tags(
    q: str = Query(..., min_length=1, max_length=30, description="Search query"),
    limit: int = Query(10, ge=1, le=50, description="Maximum results"),
    db: Session = Depends(get_db),
) -> dict:
    """Search active tags by name (for autocomplete)."""
    return {"success": True, "data": TagService.search_tags(db, q, limit)}


@router.post("/reconcile", response_model=schemas.ApiResponse[schemas.ReconcileResult])
def reconcile_usage_counts(
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    """Recompute every tag's usage count from active posts. Admin only."""
    return {"success": True, "data": TagService.reconcile_usage_counts(db)}


@router.get("/{name}/posts", response_model=schemas.TagPostsResponse)
def get_tag_posts(
    name: str,
    page: PageParam = 1,
    limit: LimitParam = 10,
    db: Session = Depends(get_db),
) -> dict:
    """
    Get a tag and the public posts carrying it.

    Domain exceptions are caught by centralized exception handlers.
    """
    tag, posts, total = TagService.get_tag_posts(
        db, name, offset_for(page, limit), limit
    )
    return {**paginated(posts, page, limit, total), "tag": tag}


@router.post(
    "/",
    response_model=schemas.ApiResponse[schemas.Tag],
    status_code=status.HTTP_201_CREATED,
)
def create_tag(
    data: schemas.TagCreate,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    tag = TagService.create_tag(db, data, current_user)
    return {"success": True, "message": "Tag created successfully", "data": tag}


@router.put("/{tag_id}", response_model=schemas.ApiResponse[schemas.Tag])
def update_tag(
    tag_id: int,
    data: schemas.TagUpdate,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    tag = TagService.update_tag(db, tag_id, data)
    return {"success": True, "message": "Tag updated successfully", "data": tag}


@router.delete("/{tag_id}", response_model=schemas.ApiResponse[None])
def delete_tag(
    tag_id: int,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    TagService.delete_tag(db, tag_id)
    return {"success": True, "message": "Tag deleted successfully"}
