"""Global settings routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from ..core import SessionDep
from ..schemas import SettingsResponse, UpdateSettingsRequest
from ..services import SettingsService, SettingsValues

router = APIRouter(prefix="/settings", tags=["settings"])


def get_settings_service(session: SessionDep) -> SettingsService:
    return SettingsService(session)


SettingsServiceDep = Annotated[SettingsService, Depends(get_settings_service)]


@router.get("", response_model=SettingsResponse, summary="Get global settings")
async def get_global_settings(service: SettingsServiceDep):
    """Stored settings, or the configured defaults before the first save."""
    return SettingsResponse.from_values(await service.get_settings())


@router.put("", response_model=SettingsResponse, summary="Update global settings")
async def update_global_settings(
    request: UpdateSettingsRequest,
    service: SettingsServiceDep,
):
    current = await service.get_settings()
    values = SettingsValues(
        service_domain=request.service_domain,
        default_reviewer_count=request.default_reviewer_count,
        slack_message_template=(
            request.slack_message_template
            if request.slack_message_template is not None
            else current.slack_message_template
        ),
    )
    return SettingsResponse.from_values(await service.update_settings(values))
