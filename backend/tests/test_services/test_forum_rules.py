"""
Unit tests for the forum domain rules.

The rules work on in-memory ORM objects, so most tests need no database.
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from models.config import settings
from models.exceptions import (
    DuplicateReportException,
    InvalidModerationActionException,
    InvalidVoteTypeException,
    ReportNotFoundException,
    ValidationException,
)
from repositories.db_models import (
    Comment,
    MembershipTier,
    ModerationAction,
    ModerationStatus,
    Post,
    PostVisibility,
    ReportFeedback,
    ReportStatus,
    TargetAudience,
    User,
    UserRole,
    VoteType,
)
from services import forum_rules

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_user(user_id: int = 1, **fields) -> User:
    fields.setdefault("role", UserRole.USER)
    fields.setdefault("membership", MembershipTier.BRONZE)
    return User(id=user_id, name=f"user{user_id}", email=f"u{user_id}@example.com", **fields)


def make_comment() -> Comment:
    return Comment(id=1, post_id=1, author_id=1, content="hi", is_active=True)


def assert_counts_match(post: Post) -> None:
    up = sum(1 for v in post.voters if v.vote_type == VoteType.UP)
    down = sum(1 for v in post.voters if v.vote_type == VoteType.DOWN)
    assert post.up_vote == up
    assert post.down_vote == down
    user_ids = [v.user_id for v in post.voters]
    assert len(user_ids) == len(set(user_ids))


class TestVoting:
    def test_apply_vote_counts(self):
        post = Post(id=1, author_id=1)

        forum_rules.apply_vote(post, 2, "up", now=NOW)
        forum_rules.apply_vote(post, 3, "down", now=NOW)

        assert post.up_vote == 1
        assert post.down_vote == 1
        assert post.last_activity == NOW

    def test_changing_vote_replaces_previous(self):
        post = Post(id=1, author_id=1)

        forum_rules.apply_vote(post, 2, VoteType.UP)
        forum_rules.apply_vote(post, 2, VoteType.DOWN)

        assert len(post.voters) == 1
        assert post.up_vote == 0
        assert post.down_vote == 1
        assert forum_rules.get_user_vote(post, 2) == VoteType.DOWN

    def test_retract_restores_counts(self):
        post = Post(id=1, author_id=1)
        forum_rules.apply_vote(post, 2, "up")
        before = (post.up_vote, post.down_vote, len(post.voters))

        forum_rules.apply_vote(post, 3, "down")
        forum_rules.retract_vote(post, 3)

        assert (post.up_vote, post.down_vote, len(post.voters)) == before
        assert forum_rules.get_user_vote(post, 3) is None

    def test_toggle_same_vote_retracts(self):
        post = Post(id=1, author_id=1)

        assert forum_rules.toggle_vote(post, 2, "up") == VoteType.UP
        assert forum_rules.toggle_vote(post, 2, "up") is None

        assert post.up_vote == 0
        assert post.voters == []

    def test_random_vote_sequences_keep_counts_consistent(self):
        rng = random.Random(42)
        post = Post(id=1, author_id=1)

        for _ in range(200):
            user_id = rng.randint(1, 8)
            if rng.random() < 0.3:
                forum_rules.retract_vote(post, user_id)
            else:
                forum_rules.apply_vote(post, user_id, rng.choice(["up", "down"]))
            assert_counts_match(post)
            assert post.up_vote + post.down_vote == len(post.voters)

    def test_invalid_vote_type(self):
        post = Post(id=1, author_id=1)

        with pytest.raises(InvalidVoteTypeException):
            forum_rules.apply_vote(post, 2, "sideways")
        assert post.voters == []


class TestReporting:
    def test_add_report_marks_comment(self):
        comment = make_comment()

        report = forum_rules.add_report(comment, 2, "Spam or promotional content")

        assert comment.is_reported is True
        assert report.status == ReportStatus.PENDING
        assert report.feedback == ReportFeedback.SPAM
        assert comment.reports == [report]

    def test_duplicate_report_rejected(self):
        comment = make_comment()
        forum_rules.add_report(comment, 2, ReportFeedback.SPAM)

        with pytest.raises(DuplicateReportException):
            forum_rules.add_report(comment, 2, ReportFeedback.HARASSMENT)
        assert len(comment.reports) == 1

    def test_report_inactive_comment(self):
        comment = make_comment()
        comment.is_active = False

        with pytest.raises(ValidationException):
            forum_rules.add_report(comment, 2, ReportFeedback.SPAM)

    def test_report_unknown_feedback(self):
        with pytest.raises(ValidationException):
            forum_rules.add_report(make_comment(), 2, "I just don't like it")


class TestModeration:
    def _reported(self) -> Comment:
        comment = make_comment()
        forum_rules.add_report(comment, 2, ReportFeedback.SPAM)
        forum_rules.add_report(comment, 3, ReportFeedback.OFF_TOPIC)
        for i, report in enumerate(comment.reports, start=1):
            report.id = i
        return comment

    def test_remove_deactivates_and_resolves(self):
        comment = self._reported()

        status = forum_rules.apply_moderation_action(comment, "remove", moderator_id=9)

        assert status == ModerationStatus.REMOVED
        assert comment.moderation_status == ModerationStatus.REMOVED
        assert comment.is_active is False
        assert comment.moderated_by == 9
        assert {r.status for r in comment.reports} == {ReportStatus.RESOLVED}

    @pytest.mark.parametrize(
        "action,comment_status,report_status",
        [
            ("approve", ModerationStatus.APPROVED, ReportStatus.DISMISSED),
            ("flag", ModerationStatus.FLAGGED, ReportStatus.REVIEWED),
        ],
    )
    def test_non_removing_actions_keep_comment_active(
        self, action, comment_status, report_status
    ):
        comment = self._reported()

        forum_rules.apply_moderation_action(comment, action)

        assert comment.moderation_status == comment_status
        assert comment.is_active is True
        assert all(r.status == report_status for r in comment.reports)

    def test_single_report_action(self):
        comment = self._reported()

        forum_rules.apply_moderation_action(comment, "flag", report_id=2)

        statuses = {r.id: r.status for r in comment.reports}
        assert statuses == {1: ReportStatus.PENDING, 2: ReportStatus.REVIEWED}

    def test_unknown_report_leaves_comment_untouched(self):
        comment = self._reported()

        with pytest.raises(ReportNotFoundException):
            forum_rules.apply_moderation_action(comment, "remove", report_id=99)
        assert comment.is_active is True
        assert comment.moderation_status is None

    def test_resolve_only_touches_pending(self):
        comment = self._reported()
        comment.reports[0].status = ReportStatus.DISMISSED

        updated = forum_rules.resolve_reports(comment, ModerationAction.REMOVE)

        assert updated == [comment.reports[1]]
        assert comment.reports[0].status == ReportStatus.DISMISSED

    def test_invalid_action(self):
        with pytest.raises(InvalidModerationActionException):
            forum_rules.parse_moderation_action("delete")


class TestMembership:
    def test_bronze_post_limit(self):
        user = make_user()

        assert forum_rules.can_post(user, settings.BRONZE_POST_LIMIT - 1, now=NOW)
        assert not forum_rules.can_post(user, settings.BRONZE_POST_LIMIT, now=NOW)

    def test_gold_has_no_limit(self):
        user = make_user(
            membership=MembershipTier.GOLD, membership_expiry=NOW + timedelta(days=1)
        )

        assert forum_rules.can_post(user, 1000, now=NOW)

    def test_lapsed_gold_counts_as_bronze(self):
        user = make_user(
            membership=MembershipTier.GOLD, membership_expiry=NOW - timedelta(seconds=1)
        )

        assert not forum_rules.has_gold_membership(user, now=NOW)
        assert forum_rules.effective_membership(user, now=NOW) == MembershipTier.BRONZE
        assert not forum_rules.can_post(user, settings.BRONZE_POST_LIMIT, now=NOW)

    def test_naive_expiry_is_treated_as_utc(self):
        user = make_user(
            membership=MembershipTier.GOLD,
            membership_expiry=(NOW + timedelta(hours=1)).replace(tzinfo=None),
        )

        assert forum_rules.has_gold_membership(user, now=NOW)

    def test_upgrade_is_idempotent_for_badges(self):
        user = make_user()
        later = NOW + timedelta(days=10)

        forum_rules.upgrade_to_gold(user, now=NOW)
        forum_rules.upgrade_to_gold(user, now=later)

        gold_badges = [b for b in user.badges if b.badge_type == MembershipTier.GOLD]
        assert len(gold_badges) == 1
        assert user.membership == MembershipTier.GOLD
        assert user.membership_expiry == later + timedelta(
            days=settings.GOLD_MEMBERSHIP_DAYS
        )


class TestVisibility:
    def test_private_post_only_for_author(self):
        post = Post(id=1, author_id=1, visibility=PostVisibility.PRIVATE)

        assert forum_rules.can_view_post(post, make_user(1))
        assert not forum_rules.can_view_post(post, make_user(2))
        assert not forum_rules.can_view_post(post, None)

    def test_can_modify(self):
        admin = make_user(5, role=UserRole.ADMIN)

        assert forum_rules.can_modify(1, make_user(1))
        assert forum_rules.can_modify(1, admin)
        assert not forum_rules.can_modify(1, make_user(2))

    def test_visible_audiences(self):
        gold = make_user(
            2, membership=MembershipTier.GOLD, membership_expiry=NOW + timedelta(days=1)
        )

        assert forum_rules.visible_audiences(None) == [TargetAudience.ALL]
        assert forum_rules.visible_audiences(make_user(1)) == [TargetAudience.ALL]
        assert set(forum_rules.visible_audiences(gold, now=NOW)) == {
            TargetAudience.ALL,
            TargetAudience.MEMBERS,
        }
        assert set(
            forum_rules.visible_audiences(make_user(3, role=UserRole.ADMIN))
        ) == set(TargetAudience)

    def test_announcement_current(self):
        assert forum_rules.is_announcement_current(True, None, now=NOW)
        assert forum_rules.is_announcement_current(True, NOW + timedelta(minutes=1), now=NOW)
        assert not forum_rules.is_announcement_current(True, NOW, now=NOW)
        assert not forum_rules.is_announcement_current(False, None, now=NOW)

