# apps/api/ophthalmotech/domains/insights/models.py
from typing import Literal

from pydantic import BaseModel, Field

from ophthalmotech.domains.users.models import UserStats

InsightSeverity = Literal["info", "warning", "critical"]


class UserInsight(BaseModel):
    type: str
    title: str
    description: str
    severity: InsightSeverity = "info"


class UserAnalytics(BaseModel):
    stats: UserStats
    active_last_30_days: int = 0
    inactive_users: int = 0
    never_logged_in: int = 0
    recent_activity_count: int = 0
    insights: list[UserInsight] = Field(default_factory=list)


class InsightsReportResponse(BaseModel):
    sent: bool
    recipients: int = 0
