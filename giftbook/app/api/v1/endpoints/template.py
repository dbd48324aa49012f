"""
Import Template API Endpoints.

Public: the template carries no owner data.
"""

from fastapi import APIRouter, Response

from giftbook.app.schemas.template import TemplateFormatInfo
from giftbook.app.services.template import (
    TEMPLATE_FILENAME,
    TEMPLATE_MEDIA_TYPE,
    build_template_csv,
    format_info,
)

router = APIRouter(prefix="/template", tags=["Template"])


@router.get("/download")
async def download_template():
    """Download the CSV upload template with three sample rows."""
    return Response(
        content=build_template_csv(),
        media_type=TEMPLATE_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={TEMPLATE_FILENAME}"},
    )


@router.get("/format-info", response_model=TemplateFormatInfo)
async def get_format_info():
    """Column order and what each column expects."""
    return format_info()
