"""
Tests for file routes in domains/files/routes.py
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from ophthalmotech.domains.files.models import ParsedDeviceData, UploadResult
from ophthalmotech.domains.files.routes import get_file_service
from ophthalmotech.domains.files.service import FileService
from ophthalmotech.domains.users.models import Department, Role
from ophthalmotech.main import app
from ophthalmotech.shared.ai.client import OpenAIClient
from tests.fixtures.user_fixtures import make_profile
from tests.helpers.route_testing import authenticate_as

UPLOADED = UploadResult(
    success=True,
    file_url="https://cdn.example.com/signed",
    file_name="log.txt",
    storage_path="test-user-id-123/2024/01/abc.txt",
)


@pytest.fixture
def mock_file_service() -> Mock:
    service = Mock(spec=FileService)
    app.dependency_overrides[get_file_service] = lambda: service
    return service


class TestUploadDeviceFile:
    """Test POST /api/v1/files."""

    def test_viewer_cannot_upload(self, client, mock_file_service, viewer_profile):
        authenticate_as(app, viewer_profile)

        response = client.post(
            "/api/v1/files", files={"file": ("log.txt", b"Serial: A", "text/plain")}
        )

        assert response.status_code == 403
        assert response.json()["detail"] == (
            "Missing required permission: Upload device documents"
        )

    def test_text_upload_is_parsed_and_stored(
        self, client, mock_file_service, technician_profile
    ):
        authenticate_as(app, technician_profile)
        parsed = ParsedDeviceData(
            raw_content="Serial: A", extracted_fields={"serial_number": "A"}
        )
        mock_file_service.extract_device_info = AsyncMock(return_value=(None, parsed))
        mock_file_service.upload_file = AsyncMock(return_value=UPLOADED)

        response = client.post(
            "/api/v1/files", files={"file": ("log.txt", b"Serial: A", "text/plain")}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["upload"]["success"] is True
        assert body["device_info"]["extracted_fields"] == {"serial_number": "A"}
        assert body["analysis"] is None
        mock_file_service.upload_file.assert_awaited_once()

    def test_analysis_requires_ai_analyze(self, client, mock_file_service):
        # Biomedical viewers may upload but not run AI analysis
        authenticate_as(app, make_profile(Role.viewer, Department.biomedical))

        response = client.post(
            "/api/v1/files",
            files={"file": ("log.txt", b"Serial: A", "text/plain")},
            data={"analyze": "true"},
        )

        assert response.status_code == 403
        assert response.json()["detail"] == (
            "Missing required permission: Run AI device analysis"
        )

    def test_analysis_of_text_file(
        self, client, mock_file_service, technician_profile
    ):
        authenticate_as(app, technician_profile)
        parsed = ParsedDeviceData(raw_content="Serial: A")
        mock_file_service.extract_device_info = AsyncMock(return_value=(None, parsed))
        mock_file_service.upload_file = AsyncMock(return_value=UPLOADED)
        ai_client = Mock(spec=OpenAIClient)
        ai_client.analyze_uploaded_file = AsyncMock(return_value="Looks fine")

        with patch(
            "ophthalmotech.domains.files.routes.get_ai_client", return_value=ai_client
        ):
            response = client.post(
                "/api/v1/files",
                files={"file": ("log.txt", b"Serial: A", "text/plain")},
                data={"analyze": "true"},
            )

        assert response.status_code == 201
        assert response.json()["analysis"] == "Looks fine"
        ai_client.analyze_uploaded_file.assert_awaited_once_with("Serial: A", "log.txt")

    def test_analysis_without_ai_fails_before_upload(
        self, client, mock_file_service, technician_profile
    ):
        authenticate_as(app, technician_profile)
        mock_file_service.extract_device_info = AsyncMock()
        mock_file_service.upload_file = AsyncMock()

        with patch("ophthalmotech.shared.ai.client.openai_client", None):
            response = client.post(
                "/api/v1/files",
                files={"file": ("log.txt", b"Serial: A", "text/plain")},
                data={"analyze": "true"},
            )

        assert response.status_code == 503
        assert response.json()["detail"] == "AI assistant not configured"
        mock_file_service.extract_device_info.assert_not_awaited()
        mock_file_service.upload_file.assert_not_awaited()


class TestBatchUpload:
    """Test POST /api/v1/files/batch."""

    def test_invalid_files_are_reported_in_place(
        self, client, mock_file_service, technician_profile
    ):
        authenticate_as(app, technician_profile)
        mock_file_service.upload_multiple_files = AsyncMock(
            return_value=[UPLOADED.model_copy(update={"file_name": "b.pdf"})]
        )

        response = client.post(
            "/api/v1/files/batch",
            files=[
                ("files", ("a.zip", b"x", "application/zip")),
                ("files", ("b.pdf", b"%PDF", "application/pdf")),
            ],
        )

        assert response.status_code == 200
        results = response.json()
        assert results[0]["success"] is False
        assert results[0]["file_name"] == "a.zip"
        assert "File type not supported" in results[0]["error"]
        assert results[1]["success"] is True
        assert results[1]["file_name"] == "b.pdf"
        uploaded = mock_file_service.upload_multiple_files.await_args.args[0]
        assert [p.filename for p in uploaded] == ["b.pdf"]
