# apps/api/ophthalmotech/domains/insights/service.py
import logging
from datetime import datetime, timedelta, timezone
from html import escape
from typing import Optional

from ophthalmotech.domains.insights.models import UserAnalytics, UserInsight
from ophthalmotech.domains.notifications.service import EmailService
from ophthalmotech.domains.users.models import Role, UserProfile, UserStatus
from ophthalmotech.domains.users.service import UserService

logger = logging.getLogger(__name__)

INACTIVITY_DAYS = 30
REPORT_TITLE = "Weekly User Insights Report"


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class InsightsService:
    """Aggregates the user directory into analytics and emails them to admins."""

    def __init__(self, user_service: UserService, email_service: EmailService):
        self.user_service = user_service
        self.email_service = email_service

    async def generate_user_analytics(
        self, now: Optional[datetime] = None
    ) -> UserAnalytics:
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=INACTIVITY_DAYS)

        users = (await self.user_service.get_all_users(limit=1000)).users
        stats = await self.user_service.get_user_stats()
        activities = await self.user_service.get_all_activities(limit=1000)

        active = inactive = never = 0
        for user in users:
            last_login = _parse_timestamp(user.last_login)
            if last_login is None:
                never += 1
            elif last_login >= cutoff:
                active += 1
            else:
                inactive += 1

        recent = 0
        for activity in activities:
            timestamp = _parse_timestamp(activity.timestamp)
            if timestamp is not None and timestamp >= cutoff:
                recent += 1

        analytics = UserAnalytics(
            stats=stats,
            active_last_30_days=active,
            inactive_users=inactive,
            never_logged_in=never,
            recent_activity_count=recent,
        )
        analytics.insights = self._derive_insights(users, analytics)
        return analytics

    def _derive_insights(
        self, users: list[UserProfile], analytics: UserAnalytics
    ) -> list[UserInsight]:
        insights: list[UserInsight] = []
        total = analytics.stats.total

        if total and analytics.inactive_users / total > 0.3:
            insights.append(
                UserInsight(
                    type="engagement",
                    title="Low engagement",
                    description=(
                        f"{analytics.inactive_users} of {total} users have not "
                        f"logged in for {INACTIVITY_DAYS} days"
                    ),
                    severity="warning",
                )
            )

        suspended = analytics.stats.by_status.get(UserStatus.suspended.value, 0)
        if suspended:
            insights.append(
                UserInsight(
                    type="security",
                    title="Suspended accounts",
                    description=f"{suspended} suspended account(s) should be reviewed",
                    severity="warning",
                )
            )

        admins = [u for u in users if u.role == Role.admin]
        if total and not admins:
            insights.append(
                UserInsight(
                    type="security",
                    title="No administrators",
                    description="No user currently holds the admin role",
                    severity="critical",
                )
            )
        elif total and len(admins) / total > 0.25:
            insights.append(
                UserInsight(
                    type="security",
                    title="Many administrators",
                    description=(
                        f"{len(admins)} of {total} users hold the admin role"
                    ),
                    severity="info",
                )
            )

        return insights

    def _render_report(self, analytics: UserAnalytics) -> str:
        stats = analytics.stats
        roles = "".join(
            f"<li>{escape(role)}: {count}</li>"
            for role, count in sorted(stats.by_role.items())
        )
        insights = "".join(
            f"<li><strong>{escape(i.title)}</strong>: {escape(i.description)}</li>"
            for i in analytics.insights
        ) or "<li>No issues found</li>"
        return (
            "<h2>User Management Insights &amp; Analytics</h2>"
            f"<p>Total users: {stats.total}</p>"
            f"<p>Active in the last {INACTIVITY_DAYS} days: "
            f"{analytics.active_last_30_days}</p>"
            f"<p>Inactive users: {analytics.inactive_users}</p>"
            f"<p>Never logged in: {analytics.never_logged_in}</p>"
            f"<p>Recent activity entries: {analytics.recent_activity_count}</p>"
            f"<h3>Users by role</h3><ul>{roles}</ul>"
            f"<h3>Insights</h3><ul>{insights}</ul>"
        )

    async def send_insights_report(
        self, analytics: Optional[UserAnalytics] = None
    ) -> int:
        """
        Email the analytics report to every admin.

        Returns:
            The number of admins emailed; 0 when there are none or the send
            failed
        """
        admins = await self.user_service.get_users_by_role(Role.admin, limit=1000)
        admin_emails = [u.email for u in admins if u.email]
        if not admin_emails:
            logger.warning("No admin users found to send insights report.")
            return 0

        if analytics is None:
            analytics = await self.generate_user_analytics()

        sent = await self.email_service.send_report(
            admin_emails, REPORT_TITLE, self._render_report(analytics)
        )
        return len(admin_emails) if sent else 0
