# apps/api/ophthalmotech/domains/insights/routes.py
from fastapi import APIRouter, Depends

from ophthalmotech.domains.auth.dependencies import get_user_service
from ophthalmotech.domains.insights.models import (
    InsightsReportResponse,
    UserAnalytics,
)
from ophthalmotech.domains.insights.service import InsightsService
from ophthalmotech.domains.notifications.service import (
    EmailService,
    get_email_service,
)
from ophthalmotech.domains.users.service import UserService
from ophthalmotech.shared.permissions import AccessDecision, Permission
from ophthalmotech.shared.permissions.dependencies import require_permission

router = APIRouter(prefix="/insights", tags=["Insights"])


def get_insights_service(
    user_service: UserService = Depends(get_user_service),
    email_service: EmailService = Depends(get_email_service),
) -> InsightsService:
    return InsightsService(user_service, email_service)


@router.get("/analytics", response_model=UserAnalytics, operation_id="getUserAnalytics")
async def get_user_analytics(
    decision: AccessDecision = Depends(require_permission(Permission.REPORTS_READ)),
    service: InsightsService = Depends(get_insights_service),
) -> UserAnalytics:
    return await service.generate_user_analytics()


@router.post(
    "/report",
    response_model=InsightsReportResponse,
    operation_id="sendInsightsReport",
)
async def send_insights_report(
    decision: AccessDecision = Depends(require_permission(Permission.REPORTS_CREATE)),
    service: InsightsService = Depends(get_insights_service),
) -> InsightsReportResponse:
    """Generate the current analytics and email them to every admin."""
    recipients = await service.send_insights_report()
    return InsightsReportResponse(sent=recipients > 0, recipients=recipients)
