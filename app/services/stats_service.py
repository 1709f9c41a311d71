"""
Dashboard and analytics aggregates
"""

from typing import Dict, Optional

from sqlalchemy.orm import Session

from app.services.repositories import EmailLogRepo, EventRepo, PassRepo, ScanLogRepo

RECENT_EVENTS = 5
RECENT_SCANS = 20


class StatsService:
    """Service for pass, email and scan statistics"""

    @staticmethod
    def get_overview(db: Session, event_id: Optional[str] = None) -> Dict:
        """Counts across all events, or for one event when event_id is given"""
        passes = PassRepo.list_for_event(db, event_id)
        email_logs = EmailLogRepo.recent(db, event_id=event_id)
        scan_logs = ScanLogRepo.recent(db, event_id=event_id)

        total_passes = len(passes)
        scanned = sum(1 for p in passes if p.get("used") or p.get("scanned_at"))

        return {
            "total_events": 1 if event_id else EventRepo.count(db),
            "total_passes": total_passes,
            "pending_invitations": sum(1 for p in passes if not p.get("sent_at")),
            "scanned_passes": scanned,
            "emails_sent": sum(1 for log in email_logs if log.get("status") == "sent"),
            "emails_failed": sum(1 for log in email_logs if log.get("status") in ("failed", "invalid")),
            "invalid_scans": sum(1 for log in scan_logs if log.get("status") == "invalid"),
            "duplicate_scans": sum(1 for log in scan_logs if log.get("status") == "already_used"),
            "scan_rate": round(scanned / total_passes * 100, 1) if total_passes else 0.0,
            "recent_events": [] if event_id else EventRepo.list(db, RECENT_EVENTS),
            "recent_scans": scan_logs[:RECENT_SCANS],
        }
