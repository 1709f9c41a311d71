"""
Admin API routes - super admin session required
"""

from typing import Optional
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import get_db
from app.schemas.admin import AdminCreate, AdminRoleUpdate
from app.schemas.event import EventCreate, EventUpdate
from app.schemas.guest import BulkImportRequest, GuestCreate, SheetImportRequest
from app.schemas.invitation import DispatchRequest, PresetCreate, TrackingSheetRequest
from app.services.auth_service import AuthService
from app.services.event_service import EventHasPasses, EventNotFound, EventService
from app.services.google_api import GmailClient, SheetsClient, SheetsError
from app.services.guest_service import DuplicateGuest, GuestService
from app.services.invitation_service import InvitationDispatcher
from app.services.qr_service import QRService
from app.services.repositories import PassRepo, PresetRepo
from app.services.sheet_service import ExcelService, parse_bulk_text, parse_sheet_rows
from app.services.stats_service import StatsService
from app.utils.responses import conflict_response, error_response, not_found_error, success_response
from app.utils.security import AdminSession, require_super_admin, session_store

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _google_token(session: AdminSession) -> str:
    if not session.google_access_token:
        raise HTTPException(
            status_code=400,
            detail="No Google access token in this session. Sign in again with Google to grant Gmail and Sheets access."
        )
    return session.google_access_token

def get_mailer(session: AdminSession = Depends(require_super_admin)) -> GmailClient:
    return GmailClient(_google_token(session))

def get_sheets(session: AdminSession = Depends(require_super_admin)) -> SheetsClient:
    return SheetsClient(_google_token(session))

def _get_event_or_404(db: Session, event_id: str) -> dict:
    try:
        return EventService.get_event(db, event_id)
    except EventNotFound:
        raise not_found_error("Event")


# -------- Events --------

@router.post("/events")
async def create_event(
    event_data: EventCreate,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    """Create a new event"""
    event = EventService.create_event(db, event_data, session.admin_id)
    return success_response(message="Event created successfully", data=event, status_code=201)

@router.get("/events")
async def list_events(
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    """List events, newest first"""
    return success_response(message="Events retrieved", data=EventService.list_events(db))

@router.get("/events/{event_id}")
async def get_event_details(
    event_id: str,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    """Get event information with pass and scan counts"""
    event = _get_event_or_404(db, event_id)
    stats = StatsService.get_overview(db, event_id)
    return success_response(message="Event details retrieved", data={**event, "stats": stats})

@router.patch("/events/{event_id}")
async def update_event(
    event_id: str,
    event_update: EventUpdate,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    """Update event title, description or branding"""
    try:
        event = EventService.update_event(db, event_id, event_update)
    except EventNotFound:
        raise not_found_error("Event")
    return success_response(message="Event updated successfully", data=event)

@router.delete("/events/{event_id}")
async def delete_event(
    event_id: str,
    cascade: bool = Query(False),
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    """Delete an event; refuses while passes exist unless cascade=true"""
    try:
        removed = EventService.delete_event(db, event_id, cascade=cascade)
    except EventNotFound:
        raise not_found_error("Event")
    except EventHasPasses as e:
        return conflict_response(
            f"Event still has {e.pass_count} passes. Delete them first or pass cascade=true.",
            "event_has_passes"
        )
    return success_response(message="Event deleted", data={"passes_deleted": removed})


# -------- Guests and passes --------

@router.post("/events/{event_id}/guests")
async def add_guest(
    event_id: str,
    guest: GuestCreate,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    """Add one guest and mint their pass"""
    event = _get_event_or_404(db, event_id)
    try:
        guest_pass = GuestService.add_guest(db, event, guest.name, guest.email)
    except DuplicateGuest as e:
        return conflict_response(str(e), "duplicate_guest")
    return success_response(message="Guest added", data=guest_pass, status_code=201)

@router.post("/events/{event_id}/guests/bulk")
async def bulk_import_guests(
    event_id: str,
    payload: BulkImportRequest,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    """Import `Name, Email` lines"""
    event = _get_event_or_404(db, event_id)
    guests, skipped = parse_bulk_text(payload.text)
    if not guests:
        return error_response(
            message="No valid guests found. Format: Name, Email (one per line)",
            status_code=422
        )
    result = GuestService.import_guests(db, event, guests, skipped_invalid=skipped)
    return success_response(message=f"Successfully imported {result.imported} guests", data=result)

@router.post("/events/{event_id}/guests/sheet")
def import_guests_from_sheet(
    event_id: str,
    payload: SheetImportRequest,
    db: Session = Depends(get_db),
    sheets: SheetsClient = Depends(get_sheets)
):
    """Import guests from a Google Sheets range (Name+Email or Email-only layout)"""
    event = _get_event_or_404(db, event_id)
    try:
        rows = sheets.read_range(payload.sheet_id, payload.range or settings.DEFAULT_SHEET_RANGE)
    except SheetsError as e:
        return error_response(message=f"Failed to import from Google Sheets: {e}", error_code=e.kind.value, status_code=502)
    if not rows:
        return error_response(message="No data found in the sheet", status_code=422)

    guests, skipped = parse_sheet_rows(rows)
    result = GuestService.import_guests(db, event, guests, sheet_id=payload.sheet_id, skipped_invalid=skipped)
    return success_response(message=f"Successfully imported {result.imported} guests", data=result)

@router.post("/events/{event_id}/guests/upload")
async def upload_guests(
    event_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    """Import guests from an uploaded Excel file"""
    event = _get_event_or_404(db, event_id)

    if not file.filename.endswith(('.xlsx', '.xls')):
        return error_response(
            message="Invalid file format. Please upload an Excel file (.xlsx or .xls)",
            status_code=400
        )

    file_content = await file.read()
    if len(file_content) > settings.MAX_UPLOAD_SIZE:
        return error_response(message="File too large", status_code=413)

    try:
        rows = ExcelService.read_rows(file_content)
    except Exception as e:
        return error_response(message=f"Error reading Excel file: {e}", status_code=422)

    guests, skipped = parse_sheet_rows(rows)
    result = GuestService.import_guests(db, event, guests, skipped_invalid=skipped)
    return success_response(
        message=f"Excel file processed successfully. {result.imported} guests imported.",
        data={**result.model_dump(), "filename": file.filename}
    )

@router.get("/events/{event_id}/guests")
async def list_guests(
    event_id: str,
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    """List passes for an event, newest first"""
    _get_event_or_404(db, event_id)
    passes = GuestService.list_passes(db, event_id)
    if search:
        needle = search.lower()
        passes = [
            p for p in passes
            if needle in p["guest_name"].lower() or needle in p["guest_email"].lower() or needle in p["code"].lower()
        ]
    return success_response(message="Guests retrieved successfully", data=passes)

@router.get("/events/{event_id}/export.xlsx")
async def export_guests(
    event_id: str,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    """Export an event's passes to Excel"""
    _get_event_or_404(db, event_id)
    content = ExcelService.export_passes(GuestService.list_passes(db, event_id))
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename=guests_{event_id}.xlsx"}
    )

@router.delete("/passes/{pass_id}")
async def delete_pass(
    pass_id: str,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    if not GuestService.delete_pass(db, pass_id):
        raise not_found_error("Pass")
    return success_response(message="Pass deleted")

@router.get("/passes/{pass_id}/qr.png")
async def get_pass_qr(
    pass_id: str,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    """QR image for one pass"""
    guest_pass = PassRepo.get(db, pass_id)
    if not guest_pass:
        raise not_found_error("Pass")
    return Response(
        content=QRService.generate_pass_qr(guest_pass["code"]),
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=pass_{pass_id}.png"}
    )


# -------- Invitations --------

@router.post("/events/{event_id}/invitations")
def send_invitations(
    event_id: str,
    payload: DispatchRequest,
    db: Session = Depends(get_db),
    mailer: GmailClient = Depends(get_mailer),
    sheets: SheetsClient = Depends(get_sheets)
):
    """Email every guest without sent_at, one at a time with a fixed delay"""
    event = _get_event_or_404(db, event_id)
    report = InvitationDispatcher(mailer, sheets=sheets).dispatch(
        db, event, payload.subject, payload.message,
        sheet_id=payload.sheet_id, sheet_range=payload.sheet_range
    )
    if not report.total:
        return success_response(message="All invitations have already been sent", data=report)
    return success_response(
        message=f"Email send process completed: {report.sent} sent, {report.failed} failed, {report.invalid} invalid",
        data=report
    )

@router.post("/sheets")
def create_tracking_sheet(
    payload: TrackingSheetRequest,
    sheets: SheetsClient = Depends(get_sheets)
):
    """Create a Google Sheet with the Name/Email/Status/Timestamp header"""
    try:
        spreadsheet_id = sheets.create_sheet(payload.title)
    except SheetsError as e:
        return error_response(message=f"Failed to create sheet: {e}", error_code=e.kind.value, status_code=502)
    return success_response(message="Sheet created successfully", data={"spreadsheet_id": spreadsheet_id}, status_code=201)

@router.get("/presets")
async def list_presets(
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    return success_response(message="Presets retrieved", data=PresetRepo.list(db))

@router.post("/presets")
async def save_preset(
    preset: PresetCreate,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    saved = PresetRepo.create(db, preset.name, preset.subject, preset.message)
    return success_response(message=f'Preset "{preset.name}" saved successfully', data=saved, status_code=201)


# -------- Admins --------

@router.get("/admins")
async def list_admins(
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    return success_response(message="Admins retrieved", data=AuthService.list_admins(db))

@router.post("/admins")
async def create_admin(
    admin: AdminCreate,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    """Create a profile for an existing identity-provider account"""
    try:
        created = AuthService.create_admin(db, admin.uid, admin.email, admin.role)
    except ValueError as e:
        return conflict_response(str(e), "admin_exists")
    return success_response(message="Admin created", data=created, status_code=201)

@router.patch("/admins/{uid}")
async def change_admin_role(
    uid: str,
    update: AdminRoleUpdate,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    admin = AuthService.change_role(db, session_store, uid, update.role)
    if not admin:
        raise not_found_error("Admin")
    return success_response(message="Role updated", data=admin)

@router.delete("/admins/{uid}")
async def remove_admin(
    uid: str,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    if uid == session.admin_id:
        return error_response(message="You cannot remove your own admin profile", status_code=400)
    if not AuthService.remove_admin(db, session_store, uid):
        raise not_found_error("Admin")
    return success_response(message="Admin profile removed")


# -------- Statistics --------

@router.get("/stats")
async def get_stats(
    event_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin)
):
    """Dashboard and analytics counts"""
    if event_id:
        _get_event_or_404(db, event_id)
    return success_response(message="Statistics retrieved", data=StatsService.get_overview(db, event_id))
