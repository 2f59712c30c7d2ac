"""Settings controller — API routes for settings management."""

from fastapi import APIRouter, Depends, Request

from auth import Principal, require_admin
from api.audit.dto.audit import ACTION_SETTINGS_UPDATED, ENTITY_SETTINGS
from api.settings.dto.settings import SettingsResponse, SettingsUpdate
from container import Services, get_services

router = APIRouter(prefix="/api/settings", tags=["Settings"])


@router.get("", response_model=SettingsResponse)
def get_settings(
    principal: Principal = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.settings.get_all()


@router.put("", response_model=SettingsResponse)
def update_settings(
    request: Request,
    data: SettingsUpdate,
    principal: Principal = Depends(require_admin),
    services: Services = Depends(get_services),
):
    updated = services.settings.update(data)
    services.audit.emit(
        ACTION_SETTINGS_UPDATED,
        ENTITY_SETTINGS,
        "server",
        request=request,
        actor_id=principal.user_id,
        details=data.model_dump(exclude_none=True),
    )
    return updated
