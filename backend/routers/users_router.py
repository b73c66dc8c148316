"""
Users router: public profiles, membership upgrades and admin user management.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import LimitParam, PageParam, offset_for, paginated
from repositories.database import get_db
from services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/", response_model=schemas.PaginatedResponse[schemas.AdminUserRow])
def list_users(
    search: Optional[str] = Query(None, max_length=100),
    page: PageParam = 1,
    limit: LimitParam = 20,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    """Active users, optionally filtered by name or email. Admin only."""
    users, total = UserService.list_users(db, search, offset_for(page, limit), limit)
    return paginated(users, page, limit, total)


@router.get("/admin/stats", response_model=schemas.ApiResponse[schemas.UserStatistics])
def user_statistics(
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    return {"success": True, "data": UserService.get_statistics(db)}


@router.post("/upgrade-membership", response_model=schemas.ApiResponse[schemas.User])
def upgrade_membership(
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    """
    Upgrade the signed-in user to gold membership for one year.

    Domain exceptions are caught by centralized exception handlers.
    """
    user = UserService.upgrade_membership(db, current_user)
    return {
        "success": True,
        "message": "Successfully upgraded to Gold membership",
        "data": user,
    }


@router.get("/{user_id}", response_model=schemas.ApiResponse[schemas.UserProfile])
def get_user_profile(user_id: int, db: Session = Depends(get_db)) -> dict:
    """
    Public profile with the user's latest public posts.
    Public endpoint - no authentication required.
    """
    return {"success": True, "data": UserService.get_profile(db, user_id)}


@router.put("/{user_id}/make-admin", response_model=schemas.ApiResponse[schemas.User])
def make_admin(
    user_id: int,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    user = UserService.set_admin_role(db, user_id, True, current_user)
    return {"success": True, "message": "User promoted to admin", "data": user}


@router.put("/{user_id}/remove-admin", response_model=schemas.ApiResponse[schemas.User])
def remove_admin(
    user_id: int,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    user = UserService.set_admin_role(db, user_id, False, current_user)
    return {"success": True, "message": "Admin role removed", "data": user}


@router.put("/{user_id}/deactivate", response_model=schemas.ApiResponse[schemas.User])
def deactivate_user(
    user_id: int,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    user = UserService.set_active(db, user_id, False, current_user)
    return {"success": True, "message": "User deactivated", "data": user}


@router.put("/{user_id}/reactivate", response_model=schemas.ApiResponse[schemas.User])
def reactivate_user(
    user_id: int,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> dict:
    user = UserService.set_active(db, user_id, True, current_user)
    return {"success": True, "message": "User reactivated", "data": user}
