"""Authentication router endpoints."""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.rate_limiter import limiter, login_limit, register_limit
from repositories.database import get_db
from services.auth_service import AuthService
from services.post_service import PostService

router = APIRouter(prefix="/auth", tags=["auth"])


def _signed_in(response: Response, user: db_models.User, token: str) -> dict:
    auth.set_auth_cookie(response, token)
    return {"success": True, "data": {"token": token, "user": user}}


@router.post(
    "/register",
    response_model=schemas.ApiResponse[schemas.AuthPayload],
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(register_limit)
def register(
    request: Request,
    response: Response,
    data: schemas.RegisterRequest,
    db: Session = Depends(get_db),
) -> dict:
    """
    Register a new account and sign it in.

    Rate limited per client address.
    """
    user, token = AuthService.register(db, data)
    return _signed_in(response, user, token)


@router.post("/login", response_model=schemas.ApiResponse[schemas.AuthPayload])
@limiter.limit(login_limit)
def login(
    request: Request,
    response: Response,
    data: schemas.LoginRequest,
    db: Session = Depends(get_db),
) -> dict:
    """
    Sign in with email and password. Rate limited per client address.

    Domain exceptions are caught by centralized exception handlers.
    """
    user, token = AuthService.login(db, data.email, data.password)
    return _signed_in(response, user, token)


@router.post("/social", response_model=schemas.ApiResponse[schemas.AuthPayload])
def social_login(
    response: Response,
    data: schemas.SocialLoginRequest,
    db: Session = Depends(get_db),
) -> dict:
    """Sign in through an external identity provider."""
    user, token = AuthService.social_login(db, data)
    return _signed_in(response, user, token)


@router.post("/logout", response_model=schemas.ApiResponse[None])
def logout(response: Response) -> dict:
    auth.clear_auth_cookie(response)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", response_model=schemas.ApiResponse[schemas.CurrentUser])
def read_users_me(
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    return {"success": True, "data": AuthService.get_me(db, current_user)}


@router.put("/profile", response_model=schemas.ApiResponse[schemas.User])
def update_profile(
    data: schemas.ProfileUpdate,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    user = AuthService.update_profile(db, current_user, data)
    return {"success": True, "message": "Profile updated", "data": user}


@router.put("/password", response_model=schemas.ApiResponse[dict])
def change_password(
    response: Response,
    data: schemas.PasswordChange,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    """
    Change the account password and rotate the session token.

    Not available to accounts that only sign in through a provider.
    """
    token = AuthService.change_password(db, current_user, data)
    auth.set_auth_cookie(response, token)
    return {
        "success": True,
        "message": "Password updated successfully",
        "data": {"token": token},
    }


@router.delete("/deactivate", response_model=schemas.ApiResponse[None])
def deactivate_account(
    response: Response,
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    AuthService.deactivate_account(db, current_user)
    auth.clear_auth_cookie(response)
    return {"success": True, "message": "Account deactivated successfully"}


@router.get("/can-post", response_model=schemas.ApiResponse[schemas.CanPostStatus])
def can_post(
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> dict:
    """Whether the user may create another post under their membership."""
    return {"success": True, "data": PostService.get_can_post_status(db, current_user)}
