"""
User service for business logic.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.time_utils import days_ago, utc_now
from models.config import settings
from models.exceptions import (
    AlreadyGoldMemberException,
    SelfModificationException,
    UserNotFoundException,
)
from repositories.post_repository import PostRepository
from repositories.user_repository import UserRepository
from services import forum_rules

REGISTRATION_STATS_DAYS = 180


class UserService:
    """Service for user-related business logic."""

    @staticmethod
    def get_user_by_id_or_raise(db: Session, user_id: int) -> db_models.User:
        user = UserRepository(db).get_by_id(user_id)
        if user is None:
            raise UserNotFoundException()
        return user

    @staticmethod
    def get_profile(db: Session, user_id: int) -> schemas.UserProfile:
        """
        Public profile with the user's most recent public posts.

        Raises:
            UserNotFoundException: If the user does not exist or is deactivated
        """
        user = UserRepository(db).get_active_by_id(user_id)
        if user is None:
            raise UserNotFoundException()
        posts = PostRepository(db).recent_public_by_author(
            user.id, settings.RECENT_PROFILE_POSTS
        )
        return schemas.UserProfile(
            user=schemas.PublicUser.model_validate(user),
            recent_posts=[schemas.PostSummary.model_validate(p) for p in posts],
        )

    @staticmethod
    def upgrade_membership(db: Session, user: db_models.User) -> db_models.User:
        """
        Grant gold membership for one period.

        A user whose gold membership has lapsed may upgrade again.

        Raises:
            AlreadyGoldMemberException: If the user's gold membership is current
        """
        if forum_rules.has_gold_membership(user):
            raise AlreadyGoldMemberException()

        forum_rules.upgrade_to_gold(user)
        repo = UserRepository(db)
        repo.commit()
        repo.refresh(user)
        logger.info(f"User {user.id} upgraded to gold until {user.membership_expiry}")
        return user

    @staticmethod
    def list_users(
        db: Session, search: Optional[str], skip: int, limit: int
    ) -> tuple[List[db_models.User], int]:
        return UserRepository(db).search_active(search, skip, limit)

    @staticmethod
    def set_admin_role(
        db: Session, user_id: int, is_admin: bool, acting_admin: db_models.User
    ) -> db_models.User:
        """
        Grant or revoke the admin role.

        Raises:
            UserNotFoundException: If the user does not exist
            SelfModificationException: If an admin revokes their own role
        """
        if not is_admin and user_id == acting_admin.id:
            raise SelfModificationException("You cannot remove your own admin role")

        repo = UserRepository(db)
        user = UserService.get_user_by_id_or_raise(db, user_id)
        user.role = db_models.UserRole.ADMIN if is_admin else db_models.UserRole.USER
        repo.commit()
        repo.refresh(user)
        logger.info(
            f"Admin {acting_admin.id} set role of user {user.id} to {user.role.value}"
        )
        return user

    @staticmethod
    def set_active(
        db: Session, user_id: int, is_active: bool, acting_admin: db_models.User
    ) -> db_models.User:
        """
        Deactivate or reactivate an account.

        Raises:
            UserNotFoundException: If the user does not exist
            SelfModificationException: If an admin deactivates themselves
        """
        if not is_active and user_id == acting_admin.id:
            raise SelfModificationException("You cannot deactivate your own account")

        repo = UserRepository(db)
        user = UserService.get_user_by_id_or_raise(db, user_id)
        user.is_active = is_active
        repo.commit()
        repo.refresh(user)
        logger.info(
            f"Admin {acting_admin.id} "
            f"{'reactivated' if is_active else 'deactivated'} user {user.id}"
        )
        return user

    @staticmethod
    def get_statistics(db: Session) -> schemas.UserStatistics:
        repo = UserRepository(db)
        total = repo.count()
        active = repo.count_active()
        gold = repo.count_gold(utc_now())
        registrations = repo.count_registrations_by_month(
            days_ago(REGISTRATION_STATS_DAYS)
        )
        return schemas.UserStatistics(
            total_users=total,
            active_users=active,
            inactive_users=total - active,
            gold_members=gold,
            bronze_members=total - gold,
            admins=repo.count_admins(),
            registrations_by_month=[
                schemas.MonthlyRegistrations(year=year, month=month, count=count)
                for year, month, count in registrations
            ],
        )
