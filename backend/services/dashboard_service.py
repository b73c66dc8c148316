"""
Admin dashboard aggregates.
"""

from datetime import datetime, timedelta
from typing import Iterable

from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.time_utils import days_ago, ensure_utc, start_of_day, utc_now
from repositories.announcement_repository import AnnouncementRepository
from repositories.comment_repository import CommentRepository
from repositories.post_repository import PostRepository
from repositories.tag_repository import TagRepository
from repositories.user_repository import UserRepository
from services.search_service import SearchService

RECENT_ACTIVITY_DAYS = 30
CHART_DAYS = 7


class DashboardService:
    """Read-only statistics for the admin area."""

    @staticmethod
    def get_totals(db: Session) -> schemas.DashboardTotals:
        users = UserRepository(db)
        return schemas.DashboardTotals(
            users=users.count(),
            active_users=users.count_active(),
            posts=PostRepository(db).count_active(),
            comments=CommentRepository(db).count_active(),
            tags=TagRepository(db).count_active(),
            announcements=AnnouncementRepository(db).count_active(),
        )

    @staticmethod
    def get_report_breakdown(db: Session) -> schemas.ReportBreakdown:
        comments = CommentRepository(db)
        return schemas.ReportBreakdown(
            reported_comments=comments.count_reported(),
            pending_reports=comments.count_pending_reports(),
            flagged_comments=comments.count_by_moderation_status(
                db_models.ModerationStatus.FLAGGED
            ),
            removed_comments=comments.count_by_moderation_status(
                db_models.ModerationStatus.REMOVED
            ),
        )

    @staticmethod
    def get_dashboard(db: Session) -> schemas.Dashboard:
        """
        Site totals, membership split, moderation load, activity over the last
        30 days and a per-day series for the last 7 days.
        """
        now = utc_now()
        totals = DashboardService.get_totals(db)
        users = UserRepository(db)
        posts = PostRepository(db)
        comments = CommentRepository(db)

        gold = users.count_gold(now)
        since = days_ago(RECENT_ACTIVITY_DAYS, now)
        recent = schemas.RecentActivity(
            new_users=users.count_created_since(since),
            new_posts=posts.count_created_since(since),
            new_comments=comments.count_created_since(since),
        )

        chart_start = start_of_day(now - timedelta(days=CHART_DAYS - 1))
        user_days = DashboardService._per_day(users.created_dates_since(chart_start))
        post_days = DashboardService._per_day(posts.created_dates_since(chart_start))
        comment_days = DashboardService._per_day(
            comments.created_dates_since(chart_start)
        )
        chart_data = []
        for offset in range(CHART_DAYS):
            day = (chart_start + timedelta(days=offset)).date().isoformat()
            chart_data.append(
                schemas.DailyActivity(
                    date=day,
                    users=user_days.get(day, 0),
                    posts=post_days.get(day, 0),
                    comments=comment_days.get(day, 0),
                )
            )

        return schemas.Dashboard(
            totals=totals,
            membership=schemas.MembershipBreakdown(gold=gold, bronze=totals.users - gold),
            reports=DashboardService.get_report_breakdown(db),
            recent_activity=recent,
            chart_data=chart_data,
        )

    @staticmethod
    def get_admin_profile(db: Session, admin: db_models.User) -> schemas.AdminProfile:
        return schemas.AdminProfile(
            user=schemas.User.model_validate(admin),
            totals=DashboardService.get_totals(db),
        )

    @staticmethod
    def get_system_overview(db: Session) -> schemas.SystemOverview:
        totals = DashboardService.get_totals(db)
        views, up, down = PostRepository(db).engagement_totals()
        average = round((up + down) / totals.posts, 2) if totals.posts else 0.0
        popular = SearchService.get_popular_searches(db)
        return schemas.SystemOverview(
            totals=totals,
            moderation=DashboardService.get_report_breakdown(db),
            engagement=schemas.EngagementTotals(
                total_views=views,
                total_up_votes=up,
                total_down_votes=down,
                average_votes_per_post=average,
            ),
            popular_searches=[schemas.PopularSearch.model_validate(s) for s in popular],
        )

    @staticmethod
    def _per_day(dates: Iterable[datetime]) -> dict[str, int]:
        counts: dict[str, int] = {}
        for created in dates:
            day = ensure_utc(created).date().isoformat()  # type: ignore[union-attr]
            counts[day] = counts.get(day, 0) + 1
        return counts
