"""Upload controller — handles file uploads via PUT."""

from fastapi import APIRouter, Depends, Request

from auth import Principal, require_principal
from api.upload.dto.upload import UploadResponse
from api.upload.services.upload_service import UploadOptions
from container import Services, get_services

router = APIRouter(prefix="/api/upload", tags=["Upload"])


@router.put("/{filename:path}", response_model=UploadResponse)
async def upload_file(
    request: Request,
    filename: str,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    """Upload a file via streaming PUT request."""
    return await services.uploads.save_upload(
        request=request,
        filename=filename,
        principal=principal,
        options=UploadOptions.from_headers(request),
    )
