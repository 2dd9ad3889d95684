# apps/api/ophthalmotech/domains/files/routes.py
from typing import List

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from supabase import Client

from ophthalmotech.core.database import get_db
from ophthalmotech.core.storage import StorageService
from ophthalmotech.domains.files.models import (
    DeviceFileResponse,
    FilePayload,
    ParsedDeviceData,
    UploadResult,
)
from ophthalmotech.domains.files.service import FileService, validate_device_file
from ophthalmotech.shared.ai.dependencies import get_ai_client
from ophthalmotech.shared.exceptions import NotAuthorizedError
from ophthalmotech.shared.permissions import (
    AccessDecision,
    AccessRequest,
    Permission,
    evaluate_access,
)
from ophthalmotech.shared.permissions.dependencies import require_permission

router = APIRouter(prefix="/files", tags=["Files"])

can_upload = require_permission(Permission.FILES_UPLOAD)


def get_file_service(
    decision: AccessDecision = Depends(can_upload),
    db: Client = Depends(get_db),
) -> FileService:
    owner_id = decision.profile.uid if decision.profile else None
    return FileService(StorageService(db), owner_id or "anonymous")


async def _to_payload(upload: UploadFile) -> FilePayload:
    return FilePayload(
        filename=upload.filename or "upload",
        content_type=upload.content_type or "application/octet-stream",
        content=await upload.read(),
    )


@router.post(
    "",
    response_model=DeviceFileResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="uploadDeviceFile",
)
async def upload_device_file(
    file: UploadFile = File(...),
    analyze: bool = Form(False),
    decision: AccessDecision = Depends(can_upload),
    service: FileService = Depends(get_file_service),
) -> DeviceFileResponse:
    """
    Upload a device document and extract what we can from it.

    Text and CSV documents are parsed for serial number, model, manufacturer
    and dates. With analyze=true they are also sent to the AI assistant,
    which requires the ai:analyze permission.
    """
    payload = await _to_payload(file)

    ai_client = None
    if analyze:
        access = evaluate_access(
            decision.profile,  # type: ignore[arg-type]
            AccessRequest(permission=Permission.AI_ANALYZE),
        )
        if not access.allowed:
            raise NotAuthorizedError(access.reason)
        ai_client = get_ai_client()

    upload, device_info = await service.extract_device_info(payload)
    if upload is None:
        upload = await service.upload_file(payload)

    analysis = None
    if ai_client is not None and isinstance(device_info, ParsedDeviceData):
        analysis = await ai_client.analyze_uploaded_file(
            device_info.raw_content, payload.filename
        )

    return DeviceFileResponse(upload=upload, device_info=device_info, analysis=analysis)


@router.post(
    "/batch",
    response_model=List[UploadResult],
    operation_id="uploadDeviceFiles",
)
async def upload_device_files(
    files: List[UploadFile] = File(...),
    service: FileService = Depends(get_file_service),
) -> List[UploadResult]:
    """Upload several files at once. Each result reports its own failure."""
    payloads = [await _to_payload(f) for f in files]
    results: list[UploadResult | None] = []
    valid: list[FilePayload] = []
    for payload in payloads:
        validation = validate_device_file(payload.content_type, payload.size)
        if validation.valid:
            valid.append(payload)
            results.append(None)
        else:
            results.append(
                UploadResult(
                    success=False, file_name=payload.filename, error=validation.error
                )
            )

    uploaded = iter(await service.upload_multiple_files(valid))
    return [result or next(uploaded) for result in results]


@router.delete(
    "", status_code=status.HTTP_204_NO_CONTENT, operation_id="deleteDeviceFile"
)
async def delete_device_file(
    path: str = Query(..., min_length=1),
    service: FileService = Depends(get_file_service),
) -> None:
    await service.delete_file(path)
