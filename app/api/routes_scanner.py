"""
Gate scanner routes - any signed-in operator
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.ws import websocket_manager
from app.core.db import get_db
from app.schemas.scan import ScanRequest
from app.services.scan_service import ScanDebouncer, ScanService
from app.utils.responses import success_response
from app.utils.security import AdminSession, get_current_session

router = APIRouter()

# Initialize scan service with WebSocket manager
scan_service = ScanService(websocket_manager)
debouncer = ScanDebouncer()

@router.post("/scan")
async def scan_pass(
    scan_data: ScanRequest,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_current_session)
):
    """Validate a scanned code and admit the guest if the pass is unused"""
    result = debouncer.recent(session.admin_id, scan_data.code)
    if result is None:
        result = await scan_service.validate_scan(db, scan_data.code, session.admin_id)
        debouncer.remember(session.admin_id, scan_data.code, result)

    return success_response(message=result.message, data=result)

@router.get("/history")
async def scan_history(
    limit: int = Query(100, ge=1, le=500),
    event_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_current_session)
):
    """Most recent scan attempts, newest first"""
    return success_response(
        message="Scan history retrieved",
        data=ScanService.recent_scans(db, limit, event_id)
    )
