"""
Pass registry: adding and importing guests
"""

import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.schemas.guest import ImportResult
from app.services.code_generator import mint_unique_code
from app.services.repositories import PassRepo

logger = logging.getLogger(__name__)


class DuplicateGuest(ValueError):
    """The event already holds a pass for this email."""


class GuestService:
    """Service for creating and managing passes"""

    @staticmethod
    def _prefix(event: dict) -> str:
        return event.get("qr_prefix") or settings.DEFAULT_QR_PREFIX

    @staticmethod
    def _create_pass(db: Session, event: dict, name: str, email: str, sheet_id: Optional[str]) -> dict:
        data = {
            "event_id": event["id"],
            "code": mint_unique_code(db, GuestService._prefix(event)),
            "guest_name": name,
            "guest_email": email,
        }
        if sheet_id:
            data["sheet_id"] = sheet_id
        return PassRepo.create(db, data)

    @staticmethod
    def add_guest(db: Session, event: dict, name: str, email: str, sheet_id: Optional[str] = None) -> dict:
        """Create a PENDING pass for one guest"""
        if email.strip().lower() in PassRepo.emails_for_event(db, event["id"]):
            raise DuplicateGuest(f"{email} already has a pass for this event")
        guest_pass = GuestService._create_pass(db, event, name.strip(), email.strip(), sheet_id)
        logger.info(f"Created pass {guest_pass['code']} for {email} in event {event['id']}")
        return guest_pass

    @staticmethod
    def import_guests(
        db: Session,
        event: dict,
        guests: Iterable[Tuple[str, str]],
        sheet_id: Optional[str] = None,
        skipped_invalid: int = 0,
    ) -> ImportResult:
        """Create passes for parsed (name, email) rows, skipping emails that already hold one"""
        result = ImportResult(skipped_invalid=skipped_invalid)
        known = PassRepo.emails_for_event(db, event["id"])

        for name, email in guests:
            key = email.strip().lower()
            if key in known:
                result.skipped_duplicates += 1
                continue
            GuestService._create_pass(db, event, name.strip(), email.strip(), sheet_id)
            known.add(key)
            result.imported += 1

        logger.info(
            f"Imported {result.imported} guests into event {event['id']} "
            f"({result.skipped_duplicates} duplicates, {result.skipped_invalid} invalid rows skipped)"
        )
        return result

    @staticmethod
    def list_passes(db: Session, event_id: str) -> List[dict]:
        """Passes for an event, newest first"""
        passes = PassRepo.list_for_event(db, event_id)
        passes.reverse()
        return passes

    @staticmethod
    def delete_pass(db: Session, pass_id: str) -> bool:
        return PassRepo.delete(db, pass_id)
