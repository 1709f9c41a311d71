"""
Invitation dispatcher: emails QR passes to guests who have not been sent one
"""

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

import jinja2
from sqlalchemy.orm import Session

from app.core.config import settings
from app.schemas.invitation import DispatchEntry, DispatchReport
from app.services.google_api import GoogleApiError, SendErrorKind
from app.services.qr_service import QRService
from app.services.repositories import EmailLogRepo, PassRepo
from app.services.sheet_service import SheetLayout, build_email_row_map, detect_sheet_format, status_range

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"
NAME_PLACEHOLDER = "{NAME}"

_env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=jinja2.select_autoescape(["html"]),
)

SHEET_STATUS_LABELS = {"sent": "Sent", "failed": "Failed", "invalid": "Invalid"}


def personalize(message: str, guest_name: str) -> str:
    return message.replace(NAME_PLACEHOLDER, guest_name)


def render_invitation_html(event: dict, guest_pass: dict, message: str, qr_data_url: str) -> str:
    return _env.get_template("invitation_email.html").render(
        event_title=event.get("title", ""),
        event_description=event.get("description"),
        logo_url=event.get("logo_url"),
        bg_color=event.get("bg_color") or "#ffffff",
        accent_color=event.get("accent_color") or "#FFD43B",
        message=personalize(message, guest_pass.get("guest_name", "")),
        qr_data_url=qr_data_url,
        code=guest_pass.get("code", ""),
        from_name=settings.MAIL_FROM_NAME,
    )


def classify_send_error(error: Exception) -> str:
    """Email log status for a failed send: `invalid` for recipient problems, else `failed`."""
    if isinstance(error, GoogleApiError) and error.kind == SendErrorKind.INVALID_RECIPIENT:
        return "invalid"
    return "failed"


class SheetTracker:
    """Writes per-guest send status back to the spreadsheets guests came from.

    Each sheet is read and its layout detected once per dispatch run. Every
    failure here is logged and swallowed.
    """

    def __init__(self, sheets, sheet_range: Optional[str] = None):
        self.sheets = sheets
        self.sheet_range = sheet_range or settings.DEFAULT_SHEET_RANGE
        self._maps: Dict[str, Optional[Tuple[SheetLayout, Dict[str, int]]]] = {}

    def _load(self, sheet_id: str) -> Optional[Tuple[SheetLayout, Dict[str, int]]]:
        if sheet_id not in self._maps:
            try:
                rows = self.sheets.read_range(sheet_id, self.sheet_range)
                layout = detect_sheet_format(rows)
                self._maps[sheet_id] = (layout, build_email_row_map(rows, layout))
            except Exception as e:
                logger.warning(f"Cannot read tracking sheet {sheet_id}: {e}")
                self._maps[sheet_id] = None
        return self._maps[sheet_id]

    def record(self, sheet_id: str, email: str, status: str, when: datetime) -> None:
        loaded = self._load(sheet_id)
        if not loaded:
            return
        layout, rows = loaded
        row_number = rows.get(email.strip().lower())
        if not row_number:
            return
        try:
            self.sheets.update_range(
                sheet_id,
                status_range(self.sheet_range, layout, row_number),
                [[SHEET_STATUS_LABELS[status], when.strftime("%Y-%m-%d %H:%M:%S")]],
            )
        except Exception as e:
            logger.warning(f"Cannot update sheet {sheet_id} row {row_number}: {e}")


class InvitationDispatcher:
    """Sequentially sends invitations with a fixed delay between guests"""

    def __init__(
        self,
        mailer,
        sheets=None,
        qr=QRService,
        delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.mailer = mailer
        self.sheets = sheets
        self.qr = qr
        self.delay = settings.SEND_DELAY_SECONDS if delay is None else delay
        self.sleep = sleep

    def dispatch(
        self,
        db: Session,
        event: dict,
        subject: str,
        message: str,
        sheet_id: Optional[str] = None,
        sheet_range: Optional[str] = None,
    ) -> DispatchReport:
        """Send to every pass of the event with no sent_at. No retries; re-run to pick up failures."""
        pending = PassRepo.list_for_event(db, event["id"], pending_only=True)
        report = DispatchReport(total=len(pending))
        tracker = SheetTracker(self.sheets, sheet_range) if self.sheets else None
        logger.info(f"Dispatching {len(pending)} invitations for event {event['id']}")

        for index, guest_pass in enumerate(pending):
            if index:
                self.sleep(self.delay)

            entry = self._send_one(db, event, guest_pass, subject, message)
            report.entries.append(entry)
            if entry.status == "sent":
                report.sent += 1
            elif entry.status == "invalid":
                report.invalid += 1
            else:
                report.failed += 1

            target_sheet = sheet_id or guest_pass.get("sheet_id")
            if tracker and target_sheet:
                tracker.record(target_sheet, guest_pass["guest_email"], entry.status, datetime.utcnow())

        logger.info(
            f"Dispatch for event {event['id']} finished: {report.sent} sent, "
            f"{report.failed} failed, {report.invalid} invalid"
        )
        return report

    def _send_one(self, db: Session, event: dict, guest_pass: dict, subject: str, message: str) -> DispatchEntry:
        entry = DispatchEntry(
            pass_id=guest_pass["id"],
            guest_name=guest_pass.get("guest_name", ""),
            recipient_email=guest_pass["guest_email"],
            status="sent",
        )
        log = {
            "pass_id": guest_pass["id"],
            "event_id": event["id"],
            "recipient_email": guest_pass["guest_email"],
            "subject": subject,
        }
        try:
            qr_data_url = self.qr.to_data_url(guest_pass["code"])
            html = render_invitation_html(event, guest_pass, message, qr_data_url)
            self.mailer.send(guest_pass["guest_email"], subject, html)
        except Exception as e:
            entry.status = classify_send_error(e)
            entry.error_message = str(e) or e.__class__.__name__
            logger.warning(f"Invitation to {guest_pass['guest_email']} {entry.status}: {entry.error_message}")
            self._append_log(db, {**log, "status": entry.status, "error_message": entry.error_message})
            return entry

        logger.info(f"Invitation sent to {guest_pass['guest_email']}")
        # The mail is out: bookkeeping failures must not turn it into a failure
        try:
            PassRepo.mark_sent(db, guest_pass["id"], datetime.utcnow())
        except Exception:
            logger.exception(f"Invitation to {guest_pass['guest_email']} sent but pass {guest_pass['id']} not marked")
            db.rollback()
        self._append_log(db, {**log, "status": "sent"})
        return entry

    @staticmethod
    def _append_log(db: Session, data: dict) -> None:
        try:
            EmailLogRepo.append(db, data)
        except Exception:
            logger.exception(f"Failed to write email log for {data['recipient_email']}")
            db.rollback()
