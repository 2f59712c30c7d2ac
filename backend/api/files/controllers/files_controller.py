"""Files controller — API routes for file management."""

from fastapi import APIRouter, Depends, Request, status

from auth import Principal, require_principal
from api.files.dto.file import (
    DownloadHistoryEntry,
    FileDetailResponse,
    FileResponse,
    FileSettingsUpdate,
)
from container import Services, get_services

router = APIRouter(prefix="/api/files", tags=["Files"])


@router.get("", response_model=list[FileResponse])
def list_files(
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    """Own files plus files shared to the caller's teams."""
    return services.files.list_files(principal)


@router.get("/{file_id}", response_model=FileDetailResponse)
def get_file(
    request: Request,
    file_id: str,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    return services.files.get_file(file_id, principal, str(request.base_url).rstrip("/"))


@router.patch("/{file_id}", response_model=FileResponse)
def update_file(
    request: Request,
    file_id: str,
    data: FileSettingsUpdate,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    return services.files.update_settings(file_id, data, principal, request)


@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_file(
    request: Request,
    file_id: str,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    services.files.delete_file(file_id, principal, request)


@router.get("/{file_id}/downloads", response_model=list[DownloadHistoryEntry])
def download_history(
    file_id: str,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    return services.files.download_history(file_id, principal)


@router.get("/{file_id}/teams", response_model=list[int])
def file_teams(
    file_id: str,
    principal: Principal = Depends(require_principal),
    services: Services = Depends(get_services),
):
    services.files.get_file(file_id, principal)
    return services.teams.list_file_teams(file_id)
