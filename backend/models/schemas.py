"""
Request and response schemas.

Field names are snake_case in Python and camelCase on the wire; requests are
accepted in either form.
"""

from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    SerializerFunctionWrapHandler,
    computed_field,
    field_validator,
    model_serializer,
)
from pydantic.alias_generators import to_camel

from repositories.db_models import (
    AnnouncementPriority,
    AnnouncementType,
    MembershipTier,
    ModerationStatus,
    PostVisibility,
    ReportFeedback,
    ReportStatus,
    SocialProvider,
    TargetAudience,
    UserRole,
    VoteType,
)
from helpers.time_utils import to_utc
from services import forum_rules

T = TypeVar("T")

HEX_COLOR_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class SparseModel(CamelModel):
    """Fields that are None are left out of the output rather than sent as null."""

    @model_serializer(mode="wrap")
    def _omit_none(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        return {key: value for key, value in handler(self).items() if value is not None}


# Envelopes
class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class PageLink(CamelModel):
    page: int
    limit: int


class PageLinks(SparseModel):
    next: Optional[PageLink] = None
    prev: Optional[PageLink] = None


class PaginatedResponse(CamelModel, Generic[T]):
    success: bool = True
    count: int
    total: int
    total_pages: int
    current_page: int
    pagination: PageLinks
    data: List[T]


# User Schemas
class Badge(CamelModel):
    badge_type: MembershipTier = Field(serialization_alias="type")
    earned_at: datetime


class AuthorSummary(CamelModel):
    id: int
    name: str
    profile_image: str
    membership: MembershipTier


class PublicUser(CamelModel):
    id: int
    name: str
    profile_image: str
    about_me: str
    role: UserRole
    membership: MembershipTier
    membership_expiry: Optional[datetime] = None
    badges: List[Badge] = []
    created_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_membership(self) -> bool:
        return forum_rules.is_gold_active(self.membership, self.membership_expiry)


class User(PublicUser):
    email: str
    social_auth_enabled: bool
    social_provider: Optional[SocialProvider] = None
    is_active: bool
    last_login: Optional[datetime] = None


class UserActivityStats(CamelModel):
    posts_count: int
    comments_count: int


class CurrentUser(User):
    stats: UserActivityStats


class AdminUserRow(CamelModel):
    id: int
    name: str
    email: str
    role: UserRole
    membership: MembershipTier
    membership_expiry: Optional[datetime] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class SocialLoginRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    provider: SocialProvider
    provider_id: str = Field(..., min_length=1)
    profile_image: Optional[str] = None


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    profile_image: Optional[str] = None
    about_me: Optional[str] = Field(None, max_length=500)


class PasswordChange(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


class AuthPayload(CamelModel):
    token: str
    user: User


class CanPostStatus(SparseModel):
    can_post: bool
    current_posts: int
    post_limit: Union[int, str]
    membership: MembershipTier
    reason: Optional[str] = None


# Post Schemas
class PostCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    tags: List[str] = Field(..., min_length=1)
    visibility: PostVisibility = PostVisibility.PUBLIC

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: List[str]) -> List[str]:
        return _normalize_tags(v)


class PostUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    tags: Optional[List[str]] = None
    visibility: Optional[PostVisibility] = None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None or len(v) == 0:
            # An empty list leaves the tags unchanged
            return None
        return _normalize_tags(v)


def _normalize_tags(tags: List[str]) -> List[str]:
    """Lowercase, trim, drop blanks and duplicates while keeping order."""
    normalized: List[str] = []
    for tag in tags:
        name = tag.strip().lower()
        if name and name not in normalized:
            if len(name) > 30:
                raise ValueError(f"Tag '{name}' is longer than 30 characters")
            normalized.append(name)
    if not normalized:
        raise ValueError("At least one tag is required")
    return normalized


class Post(CamelModel):
    id: int
    title: str
    description: str
    author: AuthorSummary
    tags: List[str]
    up_vote: int
    down_vote: int
    vote_difference: int
    total_votes: int
    visibility: PostVisibility
    views: int
    comments_count: int
    is_active: bool
    last_activity: datetime
    created_at: datetime
    updated_at: datetime
    user_vote: Optional[VoteType] = None


class PostSummary(CamelModel):
    id: int
    title: str
    tags: List[str]
    up_vote: int
    down_vote: int
    views: int
    created_at: datetime


class VoteRequest(CamelModel):
    # Validated by the voting rule so that bad values map to 400
    vote_type: str


class VoteResult(CamelModel):
    up_vote: int
    down_vote: int
    vote_difference: int
    user_vote: Optional[VoteType] = None


class PopularSearch(CamelModel):
    term: str
    search_count: int
    last_searched: datetime


class PostSearchResponse(PaginatedResponse[Post]):
    search_term: Optional[str] = None
    tags: Optional[List[str]] = None


# Comment Schemas
class CommentCreate(CamelModel):
    post_id: int
    content: str = Field(..., min_length=1, max_length=1000)


class CommentUpdate(CamelModel):
    content: str = Field(..., min_length=1, max_length=1000)


class ReportRequest(CamelModel):
    # Validated by the reporting rule so that bad values map to 400
    feedback: Optional[str] = None


class ReporterSummary(CamelModel):
    id: int
    name: str
    email: str


class Report(CamelModel):
    id: int
    reported_by: int
    reporter: Optional[ReporterSummary] = None
    feedback: ReportFeedback
    status: ReportStatus
    reported_at: datetime


class Comment(CamelModel):
    id: int
    post_id: int
    post_title: str
    author: AuthorSummary
    content: str
    is_active: bool
    is_reported: bool
    moderation_status: ModerationStatus
    reports_count: int
    created_at: datetime
    updated_at: datetime


class CommentWithReports(Comment):
    pending_reports_count: int
    reports: List[Report]


# Tag Schemas
class TagCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=30)
    display_name: Optional[str] = Field(None, min_length=1, max_length=30)
    description: str = Field("", max_length=200)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        name = v.strip().lower()
        if not name:
            raise ValueError("Tag name is required")
        return name


class TagUpdate(CamelModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=30)
    description: Optional[str] = Field(None, max_length=200)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    is_active: Optional[bool] = None


class Tag(CamelModel):
    id: int
    name: str
    display_name: str
    description: str
    color: str
    is_active: bool
    usage_count: int
    created_at: datetime


class TagPostsResponse(PaginatedResponse[Post]):
    tag: Tag


class ReconcileResult(CamelModel):
    tags_checked: int
    tags_updated: int


# Announcement Schemas
class AnnouncementCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    priority: AnnouncementPriority = AnnouncementPriority.MEDIUM
    type: AnnouncementType = AnnouncementType.GENERAL
    target_audience: TargetAudience = TargetAudience.ALL
    is_pinned: bool = False
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def expiry_in_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc(v)


class AnnouncementUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    priority: Optional[AnnouncementPriority] = None
    type: Optional[AnnouncementType] = None
    target_audience: Optional[TargetAudience] = None
    is_pinned: Optional[bool] = None
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def expiry_in_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc(v)


class Announcement(CamelModel):
    id: int
    title: str
    description: str
    author: AuthorSummary
    priority: AnnouncementPriority
    type: AnnouncementType
    target_audience: TargetAudience
    is_active: bool
    is_pinned: bool
    expires_at: Optional[datetime] = None
    views: int
    created_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_current(self) -> bool:
        return forum_rules.is_announcement_current(self.is_active, self.expires_at)


class AnnouncementCount(CamelModel):
    count: int


# Profile Schemas
class UserProfile(CamelModel):
    user: PublicUser
    recent_posts: List[PostSummary]


# Admin Schemas
class ModerationActionRequest(CamelModel):
    action: str
    report_id: Optional[int] = None


class BulkActionRequest(CamelModel):
    comment_ids: List[int] = Field(..., min_length=1)
    action: str


class ModerationResult(CamelModel):
    comment: CommentWithReports
    action: str


class BulkActionResult(CamelModel):
    action: str
    modified_count: int


class MonthlyRegistrations(CamelModel):
    year: int
    month: int
    count: int


class UserStatistics(CamelModel):
    total_users: int
    active_users: int
    inactive_users: int
    gold_members: int
    bronze_members: int
    admins: int
    registrations_by_month: List[MonthlyRegistrations]


class DashboardTotals(CamelModel):
    users: int
    active_users: int
    posts: int
    comments: int
    tags: int
    announcements: int


class MembershipBreakdown(CamelModel):
    gold: int
    bronze: int


class ReportBreakdown(CamelModel):
    reported_comments: int
    pending_reports: int
    flagged_comments: int
    removed_comments: int


class RecentActivity(CamelModel):
    new_users: int
    new_posts: int
    new_comments: int


class DailyActivity(CamelModel):
    date: str
    users: int
    posts: int
    comments: int


class Dashboard(CamelModel):
    totals: DashboardTotals
    membership: MembershipBreakdown
    reports: ReportBreakdown
    recent_activity: RecentActivity
    chart_data: List[DailyActivity]


class AdminProfile(CamelModel):
    user: User
    totals: DashboardTotals


class EngagementTotals(CamelModel):
    total_views: int
    total_up_votes: int
    total_down_votes: int
    average_votes_per_post: float


class SystemOverview(CamelModel):
    totals: DashboardTotals
    moderation: ReportBreakdown
    engagement: EngagementTotals
    popular_searches: List[PopularSearch]
