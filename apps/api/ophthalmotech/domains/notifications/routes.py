# apps/api/ophthalmotech/domains/notifications/routes.py
from fastapi import APIRouter, Depends

from ophthalmotech.domains.notifications.models import (
    DeviceAlertRequest,
    MaintenanceNotificationRequest,
    NotificationResponse,
)
from ophthalmotech.domains.notifications.service import (
    EmailService,
    get_email_service,
)
from ophthalmotech.shared.permissions import AccessDecision, Permission
from ophthalmotech.shared.permissions.dependencies import require_permission

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post(
    "/maintenance",
    response_model=NotificationResponse,
    operation_id="sendMaintenanceNotification",
)
async def send_maintenance_notification(
    request: MaintenanceNotificationRequest,
    decision: AccessDecision = Depends(
        require_permission(Permission.MAINTENANCE_ASSIGN)
    ),
    email_service: EmailService = Depends(get_email_service),
) -> NotificationResponse:
    """Email maintenance staff about a device that needs servicing."""
    sent = await email_service.send_maintenance_notification(
        recipients=[str(r) for r in request.recipients],
        device_name=request.device_name,
        maintenance_type=request.maintenance_type,
        due_date=request.due_date,
        priority=request.priority,
    )
    return NotificationResponse(sent=sent)


@router.post(
    "/alerts",
    response_model=NotificationResponse,
    operation_id="sendDeviceAlert",
)
async def send_device_alert(
    request: DeviceAlertRequest,
    decision: AccessDecision = Depends(require_permission(Permission.DEVICES_UPDATE)),
    email_service: EmailService = Depends(get_email_service),
) -> NotificationResponse:
    sent = await email_service.send_device_alert(
        recipients=[str(r) for r in request.recipients],
        device_name=request.device_name,
        alert_type=request.alert_type,
        alert_message=request.alert_message,
        severity=request.severity,
    )
    return NotificationResponse(sent=sent)
