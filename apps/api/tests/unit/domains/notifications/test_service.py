"""
Tests for EmailService in domains/notifications/service.py
"""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from ophthalmotech.domains.notifications.models import EmailAttachment, EmailOptions
from ophthalmotech.domains.notifications.service import EmailService


@pytest.fixture
def email_service() -> EmailService:
    return EmailService(
        api_key="re_test_key",
        api_url="https://email.example.com/emails",
        from_address="noreply@ophthalmotech.com",
        dashboard_url="https://app.example.com/dashboard",
    )


@pytest.fixture
def mock_response() -> Mock:
    response = Mock()
    response.raise_for_status = Mock()
    return response


class TestSendEmail:
    """Test the raw email send."""

    @pytest.mark.asyncio
    async def test_send_html_email(self, email_service, mock_response):
        with patch("httpx.AsyncClient") as mock_client:
            mock_client_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_client_instance
            mock_client_instance.post.return_value = mock_response

            sent = await email_service.send_email(
                EmailOptions(
                    to=["tech@clinic.org"],
                    subject="Hello",
                    content="<p>Hi</p>",
                    is_html=True,
                    cc=["boss@clinic.org"],
                    attachments=[
                        EmailAttachment(filename="r.pdf", url="https://f/r.pdf")
                    ],
                )
            )

        assert sent is True
        args, kwargs = mock_client_instance.post.call_args
        assert args[0] == "https://email.example.com/emails"
        assert kwargs["headers"]["Authorization"] == "Bearer re_test_key"
        payload = kwargs["json"]
        assert payload["from"] == "noreply@ophthalmotech.com"
        assert payload["to"] == ["tech@clinic.org"]
        assert payload["html"] == "<p>Hi</p>"
        assert "text" not in payload
        assert payload["cc"] == ["boss@clinic.org"]
        assert payload["attachments"][0]["path"] == "https://f/r.pdf"

    @pytest.mark.asyncio
    async def test_plain_text_email(self, email_service, mock_response):
        with patch("httpx.AsyncClient") as mock_client:
            mock_client_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_client_instance
            mock_client_instance.post.return_value = mock_response

            await email_service.send_email(
                EmailOptions(to=["a@b.org"], subject="s", content="plain")
            )

        payload = mock_client_instance.post.call_args.kwargs["json"]
        assert payload["text"] == "plain"
        assert "html" not in payload
        assert "cc" not in payload
        assert "attachments" not in payload

    @pytest.mark.asyncio
    async def test_api_error_returns_false(self, email_service, mock_response):
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Unprocessable",
            request=Mock(),
            response=Mock(status_code=422, text="invalid recipient"),
        )
        with patch("httpx.AsyncClient") as mock_client:
            mock_client_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_client_instance
            mock_client_instance.post.return_value = mock_response

            sent = await email_service.send_email(
                EmailOptions(to=["a@b.org"], subject="s", content="c")
            )

        assert sent is False

    @pytest.mark.asyncio
    async def test_network_error_returns_false(self, email_service):
        with patch("httpx.AsyncClient") as mock_client:
            mock_client_instance = AsyncMock()
            mock_client.return_value.__aenter__.return_value = mock_client_instance
            mock_client_instance.post.side_effect = httpx.ConnectError("refused")

            sent = await email_service.send_email(
                EmailOptions(to=["a@b.org"], subject="s", content="c")
            )

        assert sent is False

    @pytest.mark.asyncio
    async def test_unconfigured_service_skips_send(self):
        service = EmailService(api_key="")
        with patch("httpx.AsyncClient") as mock_client:
            sent = await service.send_email(
                EmailOptions(to=["a@b.org"], subject="s", content="c")
            )

        assert sent is False
        mock_client.assert_not_called()


class TestTemplatedEmails:
    """Test maintenance, alert and report emails."""

    @pytest.mark.asyncio
    async def test_critical_maintenance_notification(self, email_service):
        email_service.send_email = AsyncMock(return_value=True)

        sent = await email_service.send_maintenance_notification(
            ["tech@clinic.org"], "Phaco 3000", "Calibration", "2024-06-01", "critical"
        )

        assert sent is True
        options = email_service.send_email.await_args.args[0]
        assert options.subject == "🚨 CRITICAL Maintenance Required: Phaco 3000"
        assert options.is_html is True
        assert "Immediate action required" in options.content
        assert "https://app.example.com/dashboard" in options.content

    @pytest.mark.asyncio
    async def test_routine_maintenance_notification(self, email_service):
        email_service.send_email = AsyncMock(return_value=True)

        await email_service.send_maintenance_notification(
            ["tech@clinic.org"], "OCT <Scanner>", "Cleaning", "2024-06-01"
        )

        options = email_service.send_email.await_args.args[0]
        assert options.subject == "📋 Maintenance Required: OCT <Scanner>"
        assert "Medium Priority" in options.content
        assert "OCT &lt;Scanner&gt;" in options.content
        assert "Immediate action required" not in options.content

    @pytest.mark.asyncio
    async def test_device_alert(self, email_service):
        email_service.send_email = AsyncMock(return_value=False)

        sent = await email_service.send_device_alert(
            ["tech@clinic.org"], "Phaco 3000", "Overheat", "Temp 80C", "error"
        )

        assert sent is False
        options = email_service.send_email.await_args.args[0]
        assert options.subject == "❌ ERROR: Phaco 3000 - Overheat"
        assert "Temp 80C" in options.content

    @pytest.mark.asyncio
    async def test_report_with_attachment(self, email_service):
        email_service.send_email = AsyncMock(return_value=True)

        await email_service.send_report(
            ["admin@clinic.org"],
            "Weekly Report",
            "<p>All good</p>",
            attachment_url="https://f/report.csv",
            attachment_name="report.csv",
        )

        options = email_service.send_email.await_args.args[0]
        assert options.subject == "📊 Weekly Report"
        assert "<p>All good</p>" in options.content
        assert options.attachments[0].filename == "report.csv"
