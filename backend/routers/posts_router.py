"""
Posts router for post-related endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import LimitParam, PageParam, offset_for, paginated
from models.config import settings
from repositories.database import get_db
from repositories.post_repository import PostSort
from services.post_service import PostService
from services.search_service import SearchService

router = APIRouter(prefix="/posts", tags=["posts"])

SortParam = Query(
    PostSort.CREATED_AT,
    alias="sortBy",
    pattern=f"^({PostSort.CREATED_AT}|{PostSort.POPULARITY})$",
)


@router.get("/", response_model=schemas.PaginatedResponse[schemas.Post])
def list_posts(
    page: PageParam = 1,
    limit: LimitParam = settings.POSTS_PAGE_SIZE,
    sort_by: str = SortParam,
    db: Session = Depends(get_db),
) -> dict:
    """
    Get active public posts, newest or most popular first.
    Public endpoint - no authentication required.
    """
    posts, total = PostService.list_posts(db, offset_for(page, limit), limit, sort_by)
    return paginated(posts, page, limit, total)


@router.get("/search", response_model=schemas.PostSearchResponse)
def search_posts(
    q: Optional[str] = Query(None, max_length=100, description="Search term"),
    tags: Optional[str] = Query(None, description="Comma-separated tag names"),
    page: PageParam = 1,
    limit: LimitParam = settings.POSTS_PAGE_SIZE,
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
    db: Session = Depends(get_db),
) -> dict:
    """
    Search public posts by text in title, description or tags, and/or by tags.

    The search term is recorded for popular-search suggestions.
    """
    tag_list = [t.strip().lower() for t in tags.split(",") if t.strip()] if tags else []
    posts, total = PostService.search_posts(
        db, q, tag_list, offset_for(page, limit), limit, user=current_user
    )
    return {
        **paginated(posts, page, limit, total),
        "search_term": q,
        "tags": tag_list or None,
    }


@router.get(
    "/popular-searches",
    response_model=schemas.ApiResponse[list[schemas.PopularSearch]],
)
def popular_searches(db: Session = Depends(get_db)) -> dict:
    """Terms searched at least twice in the last 30 days."""
    return {"success": True, "data": SearchService.get_popular_searches(db)}


@router.get("/user/my-posts", response_model=schemas.PaginatedResponse[schemas.Post])
def my_posts(
    page: PageParam = 1,
    limit: LimitParam = 10,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    posts, total = PostService.get_user_posts(
        db, current_user, offset_for(page, limit), limit
    )
    return paginated(posts, page, limit, total)


@router.get("/{post_id}", response_model=schemas.ApiResponse[schemas.Post])
def get_post(
    post_id: int,
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
    db: Session = Depends(get_db),
) -> dict:
    """
    Get a post and count the view.

    Private posts are only visible to their author.
    Domain exceptions are caught by centralized exception handlers.
    """
    post, user_vote = PostService.get_post(db, post_id, current_user)
    data = schemas.Post.model_validate(post).model_copy(update={"user_vote": user_vote})
    return {"success": True, "data": data}


@router.post(
    "/",
    response_model=schemas.ApiResponse[schemas.Post],
    status_code=status.HTTP_201_CREATED,
)
def create_post(
    data: schemas.PostCreate,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    """
    Create a post.

    Users without gold membership are limited in their number of active posts.
    """
    post = PostService.create_post(db, data, current_user)
    return {"success": True, "message": "Post created successfully", "data": post}


@router.put("/{post_id}", response_model=schemas.ApiResponse[schemas.Post])
def update_post(
    post_id: int,
    data: schemas.PostUpdate,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    post = PostService.update_post(db, post_id, data, current_user)
    return {"success": True, "message": "Post updated successfully", "data": post}


@router.delete("/{post_id}", response_model=schemas.ApiResponse[None])
def delete_post(
    post_id: int,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    PostService.delete_post(db, post_id, current_user)
    return {"success": True, "message": "Post deleted successfully"}


@router.post("/{post_id}/vote", response_model=schemas.ApiResponse[schemas.VoteResult])
def vote_on_post(
    post_id: int,
    data: schemas.VoteRequest,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    """Vote up or down; sending the current vote again removes it."""
    result = PostService.vote_on_post(db, post_id, data.vote_type, current_user)
    return {"success": True, "data": result}
