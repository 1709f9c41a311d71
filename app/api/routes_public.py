"""
Public API routes - no authentication required
"""

from fastapi import APIRouter
from fastapi.responses import Response

from app.core.config import settings
from app.services.sheet_service import ExcelService

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "backend": "firestore" if settings.USE_FIREBASE else "sql"}

@router.get("/template/guest_import_template.xlsx")
async def download_import_template():
    """Download the Name/Email Excel template for guest import"""
    return Response(
        content=ExcelService.create_template(),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=guest_import_template.xlsx"}
    )
