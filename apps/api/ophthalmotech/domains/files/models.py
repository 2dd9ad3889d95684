# apps/api/ophthalmotech/domains/files/models.py
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class FilePayload:
    """An uploaded file held in memory."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class FileValidation(BaseModel):
    valid: bool
    error: Optional[str] = None


class UploadResult(BaseModel):
    success: bool
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    storage_path: Optional[str] = None
    error: Optional[str] = None


class ParsedDeviceData(BaseModel):
    raw_content: str
    extracted_fields: dict[str, str] = Field(default_factory=dict)


class UploadedDeviceFile(BaseModel):
    file_name: str
    file_url: Optional[str]
    file_type: str
    file_size: int
    uploaded_at: str


class DeviceFileResponse(BaseModel):
    upload: UploadResult
    device_info: Optional[ParsedDeviceData | UploadedDeviceFile] = None
    analysis: Optional[str] = None
