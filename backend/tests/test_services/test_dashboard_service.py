"""
Unit tests for DashboardService.
"""

from datetime import timedelta

import repositories.db_models as db_models
from helpers.time_utils import utc_now
from services.comment_service import CommentService
from services.dashboard_service import CHART_DAYS, DashboardService
from services.search_service import SearchService


class TestDashboard:
    def test_totals_and_membership(
        self, db_session, test_user, gold_user, test_post, test_comment, test_tag
    ):
        dashboard = DashboardService.get_dashboard(db_session)

        # test_user, gold_user, other_user (comment author) and admin_user (tag creator)
        assert dashboard.totals.users == 4
        assert dashboard.totals.posts == 1
        assert dashboard.totals.comments == 1
        assert dashboard.totals.tags == 1
        assert dashboard.membership.gold == 1
        assert dashboard.membership.bronze == 3
        assert dashboard.recent_activity.new_posts == 1

    def test_chart_covers_last_week(self, db_session, test_user, make_post):
        make_post(test_user, title="Today")
        make_post(test_user, title="Old", created_at=utc_now() - timedelta(days=20))

        chart = DashboardService.get_dashboard(db_session).chart_data

        assert len(chart) == CHART_DAYS
        assert chart[-1].date == utc_now().date().isoformat()
        assert chart[-1].posts == 1
        assert sum(day.posts for day in chart) == 1

    def test_report_breakdown(self, db_session, test_comment, test_user, admin_user):
        CommentService.report_comment(
            db_session, test_comment.id, db_models.ReportFeedback.SPAM.value, test_user
        )

        reports = DashboardService.get_dashboard(db_session).reports

        assert reports.reported_comments == 1
        assert reports.pending_reports == 1
        assert reports.removed_comments == 0


class TestSystemOverview:
    def test_engagement(self, db_session, test_user, make_post):
        make_post(test_user, title="A", up_vote=3, down_vote=1, views=10)
        make_post(test_user, title="B", up_vote=0, down_vote=1, views=5)
        for _ in range(2):
            SearchService.record_search(db_session, "python")

        overview = DashboardService.get_system_overview(db_session)

        assert overview.engagement.total_views == 15
        assert overview.engagement.total_up_votes == 3
        assert overview.engagement.total_down_votes == 2
        assert overview.engagement.average_votes_per_post == 2.5
        assert [s.term for s in overview.popular_searches] == ["python"]

    def test_empty_site(self, db_session):
        overview = DashboardService.get_system_overview(db_session)

        assert overview.engagement.average_votes_per_post == 0.0
        assert overview.popular_searches == []


def test_admin_profile(db_session, admin_user, test_post):
    profile = DashboardService.get_admin_profile(db_session, admin_user)

    assert profile.user.id == admin_user.id
    assert profile.totals.posts == 1
