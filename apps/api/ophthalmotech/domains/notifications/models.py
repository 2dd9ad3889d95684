# apps/api/ophthalmotech/domains/notifications/models.py
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

Priority = Literal["low", "medium", "high", "critical"]
Severity = Literal["info", "warning", "error", "critical"]


class EmailAttachment(BaseModel):
    filename: str
    url: str
    content_type: Optional[str] = None


class EmailOptions(BaseModel):
    to: list[str] = Field(min_length=1)
    subject: str
    content: str
    is_html: bool = False
    cc: list[str] = Field(default_factory=list)
    attachments: list[EmailAttachment] = Field(default_factory=list)


class MaintenanceNotificationRequest(BaseModel):
    recipients: list[EmailStr] = Field(min_length=1)
    device_name: str
    maintenance_type: str
    due_date: str
    priority: Priority = "medium"


class DeviceAlertRequest(BaseModel):
    recipients: list[EmailStr] = Field(min_length=1)
    device_name: str
    alert_type: str
    alert_message: str
    severity: Severity = "warning"


class NotificationResponse(BaseModel):
    sent: bool
