"""
Gate scan validation with real-time broadcasting
"""

import logging
import time
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.api.ws import WebSocketManager
from app.core.config import settings
from app.schemas.scan import ScanResult, ScanStatus
from app.services.repositories import EventRepo, PassRepo, ScanLogRepo

logger = logging.getLogger(__name__)


class ScanService:
    """Service for validating scanned pass codes"""

    def __init__(self, websocket_manager: WebSocketManager):
        self.websocket_manager = websocket_manager

    async def validate_scan(self, db: Session, code: str, operator_id: str) -> ScanResult:
        """Classify a scanned code, consume the pass if it is still unused, and log the attempt"""
        code = code.strip()
        try:
            result = self._classify(db, code, operator_id)
        except Exception as e:
            logger.exception(f"Error processing scan of {code!r}")
            return ScanResult(status=ScanStatus.INVALID, message=f"Error processing scan: {e}", code=code)

        logger.info(f"Scan of {code!r} by {operator_id}: {result.status.value}")
        self._append_log(db, result, operator_id)

        if result.event_id:
            await self.websocket_manager.broadcast_to_event(result.event_id, {
                "type": "scan",
                "result": result.model_dump(mode="json"),
                "timestamp": datetime.utcnow().isoformat(),
            })
        return result

    def _classify(self, db: Session, code: str, operator_id: str) -> ScanResult:
        guest_pass = PassRepo.get_by_code(db, code)
        if not guest_pass:
            return ScanResult(status=ScanStatus.INVALID, message="Invalid QR Code - Pass Not Found", code=code)

        event = EventRepo.get(db, guest_pass["event_id"])
        event_title = event.get("title") if event else None

        if guest_pass.get("used") or guest_pass.get("scanned_at"):
            return self._already_used(guest_pass, code, event_title)

        now = datetime.utcnow()
        if PassRepo.mark_used(db, guest_pass["id"], operator_id, now):
            name = guest_pass.get("guest_name") or "Guest"
            return ScanResult(
                status=ScanStatus.VALID,
                message=f"Access Granted - Welcome {name}!",
                code=code,
                guest_name=guest_pass.get("guest_name"),
                scanned_at=now,
                pass_id=guest_pass["id"],
                event_id=guest_pass["event_id"],
                event_title=event_title,
            )

        # Another scan consumed the pass between our read and our write
        current = PassRepo.get(db, guest_pass["id"])
        if not current:
            return ScanResult(status=ScanStatus.INVALID, message="Invalid QR Code - Pass Not Found", code=code)
        return self._already_used(current, code, event_title)

    @staticmethod
    def _already_used(guest_pass: dict, code: str, event_title: Optional[str]) -> ScanResult:
        return ScanResult(
            status=ScanStatus.ALREADY_USED,
            message=f"Already Scanned - {guest_pass.get('guest_name') or 'Guest'}",
            code=code,
            guest_name=guest_pass.get("guest_name"),
            scanned_at=guest_pass.get("scanned_at"),
            pass_id=guest_pass["id"],
            event_id=guest_pass.get("event_id"),
            event_title=event_title,
        )

    @staticmethod
    def _append_log(db: Session, result: ScanResult, operator_id: str) -> None:
        try:
            ScanLogRepo.append(db, {
                "pass_id": result.pass_id,
                "scanned_code": result.code,
                "scanner_id": operator_id,
                "status": result.status.value,
                "event_id": result.event_id,
                "guest_name": result.guest_name,
            })
        except Exception:
            # The pass transition already happened; the gate result stands
            logger.exception(f"Failed to write scan log for {result.code!r}")
            db.rollback()

    @staticmethod
    def recent_scans(db: Session, limit: Optional[int] = None, event_id: Optional[str] = None) -> List[dict]:
        return ScanLogRepo.recent(db, limit or settings.SCAN_HISTORY_LIMIT, event_id)


class ScanDebouncer:
    """Suppresses an operator's immediate repeat of the same code.

    Purely a UX guard for camera re-reads; the pass transition itself is
    protected by the conditional write in PassRepo.mark_used.
    """

    def __init__(self, cooldown_seconds: Optional[float] = None):
        self.cooldown_seconds = settings.SCAN_COOLDOWN_SECONDS if cooldown_seconds is None else cooldown_seconds
        self._last: Dict[str, Tuple[str, float, ScanResult]] = {}

    def recent(self, operator_id: str, code: str) -> Optional[ScanResult]:
        entry = self._last.get(operator_id)
        if not entry:
            return None
        last_code, seen_at, result = entry
        if last_code != code.strip() or time.monotonic() - seen_at > self.cooldown_seconds:
            return None
        return result.model_copy(update={"debounced": True})

    def remember(self, operator_id: str, code: str, result: ScanResult) -> None:
        self._last[operator_id] = (code.strip(), time.monotonic(), result)
