"""
Forum domain rules.

Pure transformations over ORM records already loaded in a session: they mutate
the objects in memory and never query, flush or commit. Services call them and
then commit, so each rule application lands in a single transaction.

Invariants kept here:
- ``Post.up_vote``/``Post.down_vote`` are recounted from ``Post.voters`` on
  every change, and a user appears at most once in ``voters``.
- ``Comment.is_reported`` is true iff ``Comment.reports`` is non-empty, and a
  user reports a given comment at most once.
- A comment moderated as ``removed`` is deactivated.
"""

from datetime import datetime, timedelta

from models.config import settings
from models.exceptions import (
    DuplicateReportException,
    InvalidModerationActionException,
    InvalidVoteTypeException,
    ReportNotFoundException,
    ValidationException,
)
from helpers.time_utils import ensure_utc, utc_now
from repositories.db_models import (
    Comment,
    CommentReport,
    MembershipTier,
    ModerationAction,
    ModerationStatus,
    Post,
    PostVisibility,
    PostVoter,
    ReportFeedback,
    ReportStatus,
    TargetAudience,
    User,
    UserBadge,
    VoteType,
)

MODERATION_STATUS_FOR_ACTION: dict[ModerationAction, ModerationStatus] = {
    ModerationAction.APPROVE: ModerationStatus.APPROVED,
    ModerationAction.FLAG: ModerationStatus.FLAGGED,
    ModerationAction.REMOVE: ModerationStatus.REMOVED,
}

REPORT_STATUS_FOR_ACTION: dict[ModerationAction, ReportStatus] = {
    ModerationAction.APPROVE: ReportStatus.DISMISSED,
    ModerationAction.FLAG: ReportStatus.REVIEWED,
    ModerationAction.REMOVE: ReportStatus.RESOLVED,
}


# --- Ownership --------------------------------------------------------------


def can_modify(owner_id: int, user: User) -> bool:
    """Posts and comments are mutable by their author or any admin."""
    return user.id == owner_id or user.is_admin


def can_view_post(post: Post, viewer: User | None) -> bool:
    if post.visibility == PostVisibility.PUBLIC:
        return True
    return viewer is not None and viewer.id == post.author_id


# --- Voting -----------------------------------------------------------------


def parse_vote_type(value: str | VoteType) -> VoteType:
    try:
        return VoteType(value)
    except ValueError:
        raise InvalidVoteTypeException()


def recount_votes(post: Post) -> None:
    post.up_vote = sum(1 for v in post.voters if v.vote_type == VoteType.UP)
    post.down_vote = sum(1 for v in post.voters if v.vote_type == VoteType.DOWN)


def get_user_vote(post: Post, user_id: int) -> VoteType | None:
    for voter in post.voters:
        if voter.user_id == user_id:
            return VoteType(voter.vote_type)
    return None


def apply_vote(
    post: Post, user_id: int, vote_type: str | VoteType, now: datetime | None = None
) -> None:
    """
    Record ``user_id``'s vote on ``post``, replacing any earlier vote.

    The existing voter row is rewritten in place rather than deleted and
    re-inserted, so the (post, user) unique constraint holds within one flush.
    """
    vote_type = parse_vote_type(vote_type)
    now = now or utc_now()

    existing = next((v for v in post.voters if v.user_id == user_id), None)
    if existing is not None:
        existing.vote_type = vote_type
        existing.voted_at = now
    else:
        post.voters.append(
            PostVoter(user_id=user_id, vote_type=vote_type, voted_at=now)
        )

    recount_votes(post)
    post.last_activity = now


def retract_vote(post: Post, user_id: int) -> None:
    post.voters[:] = [v for v in post.voters if v.user_id != user_id]
    recount_votes(post)


def toggle_vote(
    post: Post, user_id: int, vote_type: str | VoteType, now: datetime | None = None
) -> VoteType | None:
    """
    Vote with toggle semantics.

    Repeating the user's current vote retracts it; any other vote replaces it.

    Returns:
        The user's vote after the call, or None if it was retracted.
    """
    vote_type = parse_vote_type(vote_type)
    if get_user_vote(post, user_id) == vote_type:
        retract_vote(post, user_id)
        return None
    apply_vote(post, user_id, vote_type, now=now)
    return vote_type


# --- Reporting and moderation -----------------------------------------------


def add_report(
    comment: Comment,
    user_id: int,
    feedback: str | ReportFeedback,
    now: datetime | None = None,
) -> CommentReport:
    """
    Append a pending report from ``user_id``.

    Raises:
        ValidationException: If the comment is inactive or feedback is unknown.
        DuplicateReportException: If the user already reported this comment.
    """
    if not comment.is_active:
        raise ValidationException("Cannot report an inactive comment")
    try:
        feedback = ReportFeedback(feedback)
    except ValueError:
        raise ValidationException("Invalid report feedback")
    if any(report.reported_by == user_id for report in comment.reports):
        raise DuplicateReportException()

    report = CommentReport(
        reported_by=user_id,
        feedback=feedback,
        status=ReportStatus.PENDING,
        reported_at=now or utc_now(),
    )
    comment.reports.append(report)
    comment.is_reported = True
    return report


def moderate(
    comment: Comment,
    status: ModerationStatus,
    moderator_id: int | None = None,
    now: datetime | None = None,
) -> None:
    comment.moderation_status = status
    comment.moderated_by = moderator_id
    comment.moderated_at = now or utc_now()
    if status == ModerationStatus.REMOVED:
        comment.is_active = False


def parse_moderation_action(value: str | ModerationAction) -> ModerationAction:
    try:
        return ModerationAction(value)
    except ValueError:
        raise InvalidModerationActionException(str(value))


def resolve_reports(
    comment: Comment, action: ModerationAction, report_id: int | None = None
) -> list[CommentReport]:
    """
    Move reports to the status that matches ``action``.

    With ``report_id`` only that report changes, whatever its current status;
    otherwise every pending report does.

    Returns:
        The reports that were updated.
    """
    new_status = REPORT_STATUS_FOR_ACTION[action]

    if report_id is not None:
        report = next((r for r in comment.reports if r.id == report_id), None)
        if report is None:
            raise ReportNotFoundException()
        report.status = new_status
        return [report]

    updated = [r for r in comment.reports if r.status == ReportStatus.PENDING]
    for report in updated:
        report.status = new_status
    return updated


def apply_moderation_action(
    comment: Comment,
    action: str | ModerationAction,
    moderator_id: int | None = None,
    report_id: int | None = None,
    now: datetime | None = None,
) -> ModerationStatus:
    action = parse_moderation_action(action)
    status = MODERATION_STATUS_FOR_ACTION[action]
    # Look up the report first so a bad report_id leaves the comment untouched
    resolve_reports(comment, action, report_id=report_id)
    moderate(comment, status, moderator_id=moderator_id, now=now)
    return status


# --- Membership -------------------------------------------------------------


def is_gold_active(
    membership: MembershipTier | str,
    expiry: datetime | None,
    now: datetime | None = None,
) -> bool:
    if membership != MembershipTier.GOLD:
        return False
    expiry = ensure_utc(expiry)
    return expiry is None or (now or utc_now()) < expiry


def has_gold_membership(user: User, now: datetime | None = None) -> bool:
    return is_gold_active(user.membership, user.membership_expiry, now)


def effective_membership(user: User, now: datetime | None = None) -> MembershipTier:
    if has_gold_membership(user, now):
        return MembershipTier.GOLD
    return MembershipTier.BRONZE


def can_post(
    user: User, existing_active_post_count: int, now: datetime | None = None
) -> bool:
    if has_gold_membership(user, now):
        return True
    return existing_active_post_count < settings.BRONZE_POST_LIMIT


def add_badge(user: User, badge_type: MembershipTier, now: datetime | None = None) -> bool:
    """Give ``user`` a badge of ``badge_type`` unless they already hold one."""
    if any(badge.badge_type == badge_type for badge in user.badges):
        return False
    user.badges.append(UserBadge(badge_type=badge_type, earned_at=now or utc_now()))
    return True


def upgrade_to_gold(user: User, now: datetime | None = None) -> None:
    """
    Grant gold membership for a full period starting at ``now``.

    Badge insertion is idempotent, the expiry is not: every call resets it to
    call time plus the membership period.
    """
    now = now or utc_now()
    user.membership = MembershipTier.GOLD
    user.membership_expiry = now + timedelta(days=settings.GOLD_MEMBERSHIP_DAYS)
    add_badge(user, MembershipTier.GOLD, now=now)


# --- Announcements ----------------------------------------------------------


def is_announcement_current(
    is_active: bool, expires_at: datetime | None, now: datetime | None = None
) -> bool:
    if not is_active:
        return False
    expires_at = ensure_utc(expires_at)
    return expires_at is None or expires_at > (now or utc_now())


def visible_audiences(
    user: User | None, now: datetime | None = None
) -> list[TargetAudience]:
    """
    Announcement audiences ``user`` may read.

    Anonymous and bronze users see ``all``; gold members also see
    ``members``; admins see everything.
    """
    if user is None:
        return [TargetAudience.ALL]
    if user.is_admin:
        return list(TargetAudience)
    if has_gold_membership(user, now):
        return [TargetAudience.ALL, TargetAudience.MEMBERS]
    return [TargetAudience.ALL]
