"""DONQ — Export Settings Routes."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from donq.api.errors import to_http
from donq.core.errors import ConfigError
from donq.dependencies import get_donation_service
from donq.export.config_store import ExportFormat
from donq.services.donation_service import DonationService

router = APIRouter(prefix="/settings", tags=["Settings"])


class ExportSettingsUpdate(BaseModel):
    """Request body for PUT /settings/export."""

    path: str
    name: str
    format: ExportFormat = "csv"

    model_config = {
        "extra": "forbid",
        "json_schema_extra": {
            "examples": [
                {"path": "~/Documents/stream", "name": "donations", "format": "csv"},
            ]
        },
    }


class ExportSettingsResponse(BaseModel):
    """Current export settings plus the file the next approval writes to."""

    path: str
    name: str
    format: ExportFormat
    output_file: str


def _response(service: DonationService) -> ExportSettingsResponse:
    config = service.export_config
    return ExportSettingsResponse(
        path=config.path,
        name=config.name,
        format=config.format,
        output_file=str(config.output_file),
    )


@router.get("/export", response_model=ExportSettingsResponse)
async def get_export_settings(
    service: DonationService = Depends(get_donation_service),
):
    return _response(service)


@router.put("/export", response_model=ExportSettingsResponse)
async def update_export_settings(
    body: ExportSettingsUpdate,
    service: DonationService = Depends(get_donation_service),
):
    """Persist new export settings; the next approval uses them."""
    try:
        service.update_export_config(body.path, body.name, body.format)
    except ConfigError as e:
        raise to_http(e)
    return _response(service)
