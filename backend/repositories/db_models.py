"""
Database models using SQLAlchemy 2.0 style with Mapped type hints.

Lists that belong to a single record (post voters, comment reports, user
badges, post tags, search hits) are child tables owned by their parent with
``cascade="all, delete-orphan"``. Aggregates stored on the parent
(``Post.up_vote``, ``Comment.is_reported``) are always recomputed from those
lists by ``services.forum_rules``.
"""

import enum
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repositories.database import Base


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class MembershipTier(str, enum.Enum):
    BRONZE = "bronze"
    GOLD = "gold"


class SocialProvider(str, enum.Enum):
    GOOGLE = "google"
    FACEBOOK = "facebook"
    GITHUB = "github"


class VoteType(str, enum.Enum):
    UP = "up"
    DOWN = "down"


class PostVisibility(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class ReportFeedback(str, enum.Enum):
    """Reasons a user can give when reporting a comment."""

    INAPPROPRIATE = "Inappropriate content"
    SPAM = "Spam or promotional content"
    HARASSMENT = "Harassment or bullying"
    FALSE_INFORMATION = "False information"
    OFF_TOPIC = "Off-topic discussion"


class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class ModerationStatus(str, enum.Enum):
    APPROVED = "approved"
    PENDING = "pending"
    FLAGGED = "flagged"
    REMOVED = "removed"


class ModerationAction(str, enum.Enum):
    """Admin actions on a reported comment."""

    APPROVE = "approve"
    FLAG = "flag"
    REMOVE = "remove"


class AnnouncementPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class AnnouncementType(str, enum.Enum):
    GENERAL = "general"
    MAINTENANCE = "maintenance"
    FEATURE = "feature"
    POLICY = "policy"
    EVENT = "event"


class TargetAudience(str, enum.Enum):
    ALL = "all"
    MEMBERS = "members"
    ADMINS = "admins"


DEFAULT_PROFILE_IMAGE = "https://via.placeholder.com/150/cccccc/666666?text=User"
DEFAULT_TAG_COLOR = "#3B82F6"


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    # Absent for accounts created through social login
    hashed_password: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    profile_image: Mapped[str] = mapped_column(
        String, nullable=False, default=DEFAULT_PROFILE_IMAGE
    )
    about_me: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), nullable=False, default=UserRole.USER
    )
    membership: Mapped[MembershipTier] = mapped_column(
        Enum(MembershipTier), nullable=False, default=MembershipTier.BRONZE
    )
    membership_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )

    social_auth_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    social_provider: Mapped[Optional[SocialProvider]] = mapped_column(
        Enum(SocialProvider), nullable=True
    )
    social_provider_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_login: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    # Relationships
    badges: Mapped[List["UserBadge"]] = relationship(
        "UserBadge",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserBadge.earned_at",
    )
    posts: Mapped[List["Post"]] = relationship("Post", back_populates="author")
    comments: Mapped[List["Comment"]] = relationship(
        "Comment", back_populates="author", foreign_keys="Comment.author_id"
    )

    __table_args__ = (
        Index("ix_users_role_active", "role", "is_active"),
        Index("ix_users_membership", "membership"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserBadge(Base):
    __tablename__ = "user_badges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    badge_type: Mapped[MembershipTier] = mapped_column(
        Enum(MembershipTier), nullable=False
    )
    earned_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    user: Mapped["User"] = relationship("User", back_populates="badges")


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    # Cache of the voter list; written only by forum_rules
    up_vote: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    down_vote: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    visibility: Mapped[PostVisibility] = mapped_column(
        Enum(PostVisibility), nullable=False, default=PostVisibility.PUBLIC
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_activity: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    # Relationships
    author: Mapped["User"] = relationship("User", back_populates="posts")
    post_tags: Mapped[List["PostTag"]] = relationship(
        "PostTag",
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="PostTag.position",
    )
    voters: Mapped[List["PostVoter"]] = relationship(
        "PostVoter", back_populates="post", cascade="all, delete-orphan"
    )
    comments: Mapped[List["Comment"]] = relationship(
        "Comment", back_populates="post", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_posts_author_active", "author_id", "is_active"),
        Index("ix_posts_visibility_active", "visibility", "is_active"),
        Index("ix_posts_created", "created_at"),
    )

    @property
    def tags(self) -> list[str]:
        return [post_tag.name for post_tag in self.post_tags]

    @property
    def vote_difference(self) -> int:
        return self.up_vote - self.down_vote

    @property
    def total_votes(self) -> int:
        return self.up_vote + self.down_vote

    @property
    def comments_count(self) -> int:
        return sum(1 for comment in self.comments if comment.is_active)


class PostTag(Base):
    __tablename__ = "post_tags"
    __table_args__ = (
        UniqueConstraint("post_id", "name", name="uq_post_tag_name"),
        Index("ix_post_tags_name", "name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(30), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    post: Mapped["Post"] = relationship("Post", back_populates="post_tags")


class PostVoter(Base):
    """One entry per user per post."""

    __tablename__ = "post_voters"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_post_voter_post_user"),
        Index("ix_post_voters_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    vote_type: Mapped[VoteType] = mapped_column(Enum(VoteType), nullable=False)
    voted_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    post: Mapped["Post"] = relationship("Post", back_populates="voters")


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (
        Index("ix_comments_post_active", "post_id", "is_active"),
        Index("ix_comments_reported", "is_reported"),
        Index("ix_comments_moderation", "moderation_status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id"), nullable=False
    )
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    content: Mapped[str] = mapped_column(String(1000), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # True iff reports is non-empty; written only by forum_rules
    is_reported: Mapped[bool] = mapped_column(Boolean, default=False)
    moderation_status: Mapped[ModerationStatus] = mapped_column(
        Enum(ModerationStatus), nullable=False, default=ModerationStatus.APPROVED
    )
    moderated_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    moderated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    # Relationships
    post: Mapped["Post"] = relationship("Post", back_populates="comments")
    author: Mapped["User"] = relationship(
        "User", back_populates="comments", foreign_keys=[author_id]
    )
    reports: Mapped[List["CommentReport"]] = relationship(
        "CommentReport",
        back_populates="comment",
        cascade="all, delete-orphan",
        order_by="CommentReport.reported_at",
    )

    @property
    def post_title(self) -> str:
        return self.post.title if self.post else ""

    @property
    def reports_count(self) -> int:
        return len(self.reports)

    @property
    def pending_reports_count(self) -> int:
        return sum(1 for r in self.reports if r.status == ReportStatus.PENDING)


class CommentReport(Base):
    __tablename__ = "comment_reports"
    __table_args__ = (
        UniqueConstraint(
            "comment_id", "reported_by", name="uq_comment_report_comment_user"
        ),
        Index("ix_comment_reports_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    comment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False
    )
    reported_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    feedback: Mapped[ReportFeedback] = mapped_column(
        Enum(ReportFeedback), nullable=False
    )
    status: Mapped[ReportStatus] = mapped_column(
        Enum(ReportStatus), nullable=False, default=ReportStatus.PENDING
    )
    reported_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    comment: Mapped["Comment"] = relationship("Comment", back_populates="reports")
    reporter: Mapped["User"] = relationship("User")


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(
        String(30), unique=True, index=True, nullable=False
    )
    display_name: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    color: Mapped[str] = mapped_column(
        String(7), nullable=False, default=DEFAULT_TAG_COLOR
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    creator: Mapped["User"] = relationship("User")

    __table_args__ = (Index("ix_tags_usage", "usage_count"),)


class Announcement(Base):
    __tablename__ = "announcements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(String(2000), nullable=False)
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    priority: Mapped[AnnouncementPriority] = mapped_column(
        Enum(AnnouncementPriority),
        nullable=False,
        default=AnnouncementPriority.MEDIUM,
    )
    type: Mapped[AnnouncementType] = mapped_column(
        Enum(AnnouncementType), nullable=False, default=AnnouncementType.GENERAL
    )
    target_audience: Mapped[TargetAudience] = mapped_column(
        Enum(TargetAudience), nullable=False, default=TargetAudience.ALL
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    author: Mapped["User"] = relationship("User")

    __table_args__ = (
        Index("ix_announcements_active_expiry", "is_active", "expires_at"),
        Index("ix_announcements_pinned", "is_pinned"),
    )


class Search(Base):
    __tablename__ = "searches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    term: Mapped[str] = mapped_column(String(100), nullable=False)
    normalized_term: Mapped[str] = mapped_column(
        String(100), unique=True, index=True, nullable=False
    )
    search_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    last_searched: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    result_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    searched_by: Mapped[List["SearchHit"]] = relationship(
        "SearchHit", back_populates="search", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_searches_count_recent", "search_count", "last_searched"),
    )


class SearchHit(Base):
    """A signed-in user running a given search."""

    __tablename__ = "search_hits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    search_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("searches.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    searched_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    search: Mapped["Search"] = relationship("Search", back_populates="searched_by")
