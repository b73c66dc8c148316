"""
Authentication Service

Handles registration, login and the signed-in user's own account.
"""

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from authentication.auth import (
    authenticate_user,
    create_user_token,
    get_password_hash,
    verify_password,
)
from helpers.sanitization import sanitize_image_url, sanitize_plain_text
from helpers.time_utils import utc_now
from models.exceptions import (
    InactiveUserException,
    InvalidCredentialsException,
    UserAlreadyExistsException,
    ValidationException,
)
from repositories.comment_repository import CommentRepository
from repositories.post_repository import PostRepository
from repositories.user_repository import UserRepository
from services import forum_rules


class AuthService:
    """Service for authentication business logic."""

    @staticmethod
    def register(
        db: Session, data: schemas.RegisterRequest
    ) -> tuple[db_models.User, str]:
        """
        Create a password account with a bronze badge.

        Returns:
            Tuple of (new user, session token)

        Raises:
            UserAlreadyExistsException: If the email is already registered
            ValidationException: If the name is empty once sanitized
        """
        repo = UserRepository(db)
        email = data.email.lower()
        if repo.get_by_email(email):
            raise UserAlreadyExistsException()

        name = sanitize_plain_text(data.name)
        if not name:
            raise ValidationException("Name is required")

        user = db_models.User(
            name=name,
            email=email,
            hashed_password=get_password_hash(data.password),
            last_login=utc_now(),
        )
        forum_rules.add_badge(user, db_models.MembershipTier.BRONZE)
        user = repo.create(user)

        logger.info(f"User {user.id} registered")
        return user, create_user_token(user)

    @staticmethod
    def login(db: Session, email: str, password: str) -> tuple[db_models.User, str]:
        """
        Authenticate with email and password.

        Raises:
            InvalidCredentialsException: If email or password is incorrect
            InactiveUserException: If the account is deactivated
        """
        user = authenticate_user(db, email, password)
        if user is None:
            raise InvalidCredentialsException()
        if not user.is_active:
            raise InactiveUserException()

        user.last_login = utc_now()
        UserRepository(db).commit()
        return user, create_user_token(user)

    @staticmethod
    def social_login(
        db: Session, data: schemas.SocialLoginRequest
    ) -> tuple[db_models.User, str]:
        """
        Sign in through an external provider, creating the account if needed.

        An existing account with the same email gets social auth enabled and
        keeps its password, if any.

        Raises:
            InactiveUserException: If the matching account is deactivated
        """
        repo = UserRepository(db)
        user = repo.get_by_email(data.email)
        now = utc_now()

        if user is None:
            user = db_models.User(
                name=sanitize_plain_text(data.name) or data.email.split("@")[0],
                email=data.email.lower(),
                profile_image=(
                    sanitize_image_url(data.profile_image)
                    or db_models.DEFAULT_PROFILE_IMAGE
                ),
                social_auth_enabled=True,
                social_provider=data.provider,
                social_provider_id=data.provider_id,
                last_login=now,
            )
            forum_rules.add_badge(user, db_models.MembershipTier.BRONZE, now=now)
            user = repo.create(user)
            logger.info(f"User {user.id} registered via {data.provider.value}")
            return user, create_user_token(user)

        if not user.is_active:
            raise InactiveUserException()

        if not user.social_auth_enabled:
            user.social_auth_enabled = True
            user.social_provider = data.provider
            user.social_provider_id = data.provider_id
            logger.info(f"User {user.id} linked {data.provider.value} sign-in")
        user.last_login = now
        repo.commit()
        repo.refresh(user)
        return user, create_user_token(user)

    @staticmethod
    def get_me(db: Session, user: db_models.User) -> schemas.CurrentUser:
        stats = schemas.UserActivityStats(
            posts_count=PostRepository(db).count_active_by_author(user.id),
            comments_count=CommentRepository(db).count_by_author(user.id),
        )
        user_data = schemas.User.model_validate(user).model_dump()
        return schemas.CurrentUser(**user_data, stats=stats)

    @staticmethod
    def update_profile(
        db: Session, user: db_models.User, data: schemas.ProfileUpdate
    ) -> db_models.User:
        if data.name is not None:
            name = sanitize_plain_text(data.name)
            if not name:
                raise ValidationException("Name is required")
            user.name = name
        if data.profile_image is not None:
            image = sanitize_image_url(data.profile_image)
            if image is None:
                raise ValidationException("Invalid profile image URL")
            user.profile_image = image
        if data.about_me is not None:
            user.about_me = sanitize_plain_text(data.about_me) or ""

        repo = UserRepository(db)
        repo.commit()
        repo.refresh(user)
        return user

    @staticmethod
    def change_password(
        db: Session, user: db_models.User, data: schemas.PasswordChange
    ) -> str:
        """
        Replace the account password.

        Returns:
            A fresh session token

        Raises:
            ValidationException: If the account signs in through a provider
                only, or the current password does not match
        """
        if not user.hashed_password:
            raise ValidationException(
                "Password change is not available for social login accounts"
            )
        if not verify_password(data.current_password, user.hashed_password):
            raise ValidationException("Current password is incorrect")

        user.hashed_password = get_password_hash(data.new_password)
        UserRepository(db).commit()
        logger.info(f"User {user.id} changed their password")
        return create_user_token(user)

    @staticmethod
    def deactivate_account(db: Session, user: db_models.User) -> None:
        user.is_active = False
        UserRepository(db).commit()
        logger.info(f"User {user.id} deactivated their account")
