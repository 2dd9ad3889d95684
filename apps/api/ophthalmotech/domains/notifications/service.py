# apps/api/ophthalmotech/domains/notifications/service.py
import logging
from typing import Any, Optional

import httpx

from ophthalmotech.core.settings import settings
from ophthalmotech.domains.notifications.models import (
    EmailAttachment,
    EmailOptions,
    Priority,
    Severity,
)
from ophthalmotech.domains.notifications.templates import (
    SEVERITY_CONFIG,
    device_alert_email,
    maintenance_email,
    report_email,
)

logger = logging.getLogger(__name__)


class EmailService:
    """
    Transactional email over a Resend-compatible HTTP API.

    Every send returns True on success and False on failure; delivery
    problems are logged and never raised to the caller.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        from_address: Optional[str] = None,
        dashboard_url: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.EMAIL_API_KEY
        self.api_url = api_url or settings.EMAIL_API_URL
        self.from_address = from_address or settings.EMAIL_FROM
        self.dashboard_url = dashboard_url or settings.DASHBOARD_URL
        self.timeout = settings.EMAIL_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _build_payload(self, options: EmailOptions) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "from": self.from_address,
            "to": options.to,
            "subject": options.subject,
        }
        if options.is_html:
            payload["html"] = options.content
        else:
            payload["text"] = options.content
        if options.cc:
            payload["cc"] = options.cc
        if options.attachments:
            payload["attachments"] = [
                {
                    "filename": a.filename,
                    "path": a.url,
                    "content_type": a.content_type,
                }
                for a in options.attachments
            ]
        return payload

    async def send_email(self, options: EmailOptions) -> bool:
        """
        Send a single email.

        Args:
            options: Recipients, subject, body and optional attachments

        Returns:
            True if the provider accepted the message
        """
        if not self.configured:
            logger.warning("Email API key not configured; skipping email")
            return False

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.api_url,
                    json=self._build_payload(options),
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Email API error: %s - %s", e.response.status_code, e.response.text
            )
            return False
        except httpx.RequestError as e:
            logger.error("Network error sending email: %s", e)
            return False

        logger.info("Email sent: %s", options.subject)
        return True

    async def send_maintenance_notification(
        self,
        recipients: list[str],
        device_name: str,
        maintenance_type: str,
        due_date: str,
        priority: Priority = "medium",
    ) -> bool:
        icon = "🚨 CRITICAL" if priority == "critical" else "📋"
        return await self.send_email(
            EmailOptions(
                to=recipients,
                subject=f"{icon} Maintenance Required: {device_name}",
                content=maintenance_email(
                    device_name,
                    maintenance_type,
                    due_date,
                    priority,
                    self.dashboard_url,
                ),
                is_html=True,
            )
        )

    async def send_device_alert(
        self,
        recipients: list[str],
        device_name: str,
        alert_type: str,
        alert_message: str,
        severity: Severity = "warning",
    ) -> bool:
        config = SEVERITY_CONFIG[severity]
        return await self.send_email(
            EmailOptions(
                to=recipients,
                subject=f"{config['icon']} {config['label']}: {device_name} - {alert_type}",
                content=device_alert_email(
                    device_name,
                    alert_type,
                    alert_message,
                    severity,
                    self.dashboard_url,
                ),
                is_html=True,
            )
        )

    async def send_report(
        self,
        recipients: list[str],
        report_title: str,
        report_content: str,
        attachment_url: Optional[str] = None,
        attachment_name: Optional[str] = None,
    ) -> bool:
        attachments = []
        if attachment_url:
            attachments.append(
                EmailAttachment(
                    filename=attachment_name or "report",
                    url=attachment_url,
                )
            )
        return await self.send_email(
            EmailOptions(
                to=recipients,
                subject=f"📊 {report_title}",
                content=report_email(
                    report_title,
                    report_content,
                    self.dashboard_url,
                    attachment_url,
                    attachment_name,
                ),
                is_html=True,
                attachments=attachments,
            )
        )


def get_email_service() -> EmailService:
    return EmailService()
