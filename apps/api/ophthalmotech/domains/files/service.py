import asyncio
import logging
import re
from datetime import datetime, timezone

from ophthalmotech.core.settings import settings
from ophthalmotech.core.storage import StorageService
from ophthalmotech.domains.files.models import (
    FilePayload,
    FileValidation,
    ParsedDeviceData,
    UploadedDeviceFile,
    UploadResult,
)
from ophthalmotech.shared.exceptions import InvalidDataError, StorageError

logger = logging.getLogger(__name__)

ALLOWED_TYPES = [
    "application/pdf",
    "text/plain",
    "text/csv",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "image/jpeg",
    "image/png",
    "image/gif",
]
TEXT_TYPES = ["text/plain", "text/csv"]

# Common device fields found in exported device logs; later lines win
FIELD_PATTERNS: dict[str, re.Pattern[str]] = {
    "serial_number": re.compile(r"(?:serial|sn|s/n)[:\s]*([a-zA-Z0-9-]+)", re.I),
    "model": re.compile(r"(?:model|type)[:\s]*([a-zA-Z0-9\s-]+)", re.I),
    "manufacturer": re.compile(
        r"(?:manufacturer|brand|make)[:\s]*([a-zA-Z0-9\s-]+)", re.I
    ),
    "install_date": re.compile(
        r"(?:install|installation|date)[:\s]*(\d{1,2}[-/]\d{1,2}[-/]\d{2,4})", re.I
    ),
    "last_maintenance": re.compile(
        r"(?:maintenance|service|last)[:\s]*(\d{1,2}[-/]\d{1,2}[-/]\d{2,4})", re.I
    ),
}


def validate_device_file(
    content_type: str | None, size: int, max_size: int | None = None
) -> FileValidation:
    """Check a device document's type and size before upload."""
    limit = max_size if max_size is not None else settings.MAX_UPLOAD_SIZE

    if content_type not in ALLOWED_TYPES:
        return FileValidation(
            valid=False,
            error=(
                "File type not supported. Please upload PDF, text, CSV, Excel, "
                "or image files."
            ),
        )

    if size > limit:
        return FileValidation(
            valid=False,
            error=f"File size too large. Maximum size is {limit // (1024 * 1024)}MB.",
        )

    return FileValidation(valid=True)


def parse_device_data(content: str) -> ParsedDeviceData:
    """
    Pull common device fields out of plain text or CSV content.

    Args:
        content: The document text

    Returns:
        The raw content and whichever fields were recognised
    """
    data = ParsedDeviceData(raw_content=content)
    for line in (line for line in content.splitlines() if line.strip()):
        for key, pattern in FIELD_PATTERNS.items():
            match = pattern.search(line)
            if match and match.group(1):
                data.extracted_fields[key] = match.group(1).strip()
    return data


def read_file_as_text(payload: FilePayload) -> str:
    try:
        return payload.content.decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidDataError(f"Failed to read file: {payload.filename}")


class FileService:
    """Uploads device documents on behalf of a user."""

    def __init__(self, storage: StorageService, owner_id: str):
        self.storage = storage
        self.owner_id = owner_id

    async def upload_file(self, payload: FilePayload) -> UploadResult:
        """
        Upload one file. Never raises; failures are reported in the result.
        """
        try:
            path = self.storage.generate_path(self.owner_id, payload.filename)
            stored_path = await self.storage.upload_file(
                payload.content, path, payload.content_type
            )
            file_url = await self.storage.get_file_url(stored_path)
        except Exception as e:
            logger.error("File upload error for %s: %s", payload.filename, e)
            return UploadResult(
                success=False, error="Failed to upload file. Please try again."
            )

        return UploadResult(
            success=True,
            file_url=file_url,
            file_name=payload.filename,
            storage_path=stored_path,
        )

    async def upload_multiple_files(
        self, payloads: list[FilePayload]
    ) -> list[UploadResult]:
        """Upload files concurrently; results are in input order."""
        return list(await asyncio.gather(*(self.upload_file(p) for p in payloads)))

    async def extract_device_info(
        self, payload: FilePayload
    ) -> tuple[UploadResult | None, ParsedDeviceData | UploadedDeviceFile]:
        """
        Extract device information from an uploaded document.

        Text and CSV files are parsed locally. Other types are uploaded so
        they can be analysed later.

        Raises:
            InvalidDataError: If the file fails validation
            StorageError: If a non-text file cannot be uploaded
        """
        validation = validate_device_file(payload.content_type, payload.size)
        if not validation.valid:
            raise InvalidDataError(validation.error or "Invalid file")

        if payload.content_type in TEXT_TYPES:
            return None, parse_device_data(read_file_as_text(payload))

        upload = await self.upload_file(payload)
        if not upload.success:
            raise StorageError(upload.error or "Failed to upload file")

        return upload, UploadedDeviceFile(
            file_name=payload.filename,
            file_url=upload.file_url,
            file_type=payload.content_type,
            file_size=payload.size,
            uploaded_at=datetime.now(timezone.utc).isoformat(),
        )

    async def delete_file(self, storage_path: str) -> None:
        if not storage_path.startswith(f"{self.owner_id}/"):
            raise InvalidDataError("Files can only be deleted by their uploader")
        try:
            await self.storage.delete_file(storage_path)
        except Exception as e:
            logger.error("File deletion error for %s: %s", storage_path, e)
            raise StorageError(str(e))
