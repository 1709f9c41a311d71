"""
Event management
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.schemas.event import EventCreate, EventUpdate
from app.services.repositories import EventRepo, PassRepo

logger = logging.getLogger(__name__)


class EventNotFound(LookupError):
    pass


class EventHasPasses(RuntimeError):
    """Deleting the event would orphan its passes."""

    def __init__(self, event_id: str, pass_count: int):
        super().__init__(f"Event {event_id} still has {pass_count} passes")
        self.pass_count = pass_count


class EventService:
    """Service for event operations"""

    @staticmethod
    def create_event(db: Session, event_data: EventCreate, admin_id: Optional[str]) -> dict:
        event = EventRepo.create(db, {**event_data.model_dump(), "admin_id": admin_id})
        logger.info(f"Event {event['id']} created with prefix {event['qr_prefix']}")
        return event

    @staticmethod
    def list_events(db: Session, limit: Optional[int] = None) -> List[dict]:
        return EventRepo.list(db, limit)

    @staticmethod
    def get_event(db: Session, event_id: str) -> dict:
        event = EventRepo.get(db, event_id)
        if not event:
            raise EventNotFound(event_id)
        return event

    @staticmethod
    def update_event(db: Session, event_id: str, event_update: EventUpdate) -> dict:
        fields = event_update.model_dump(exclude_unset=True)
        event = EventRepo.update(db, event_id, fields)
        if not event:
            raise EventNotFound(event_id)
        return event

    @staticmethod
    def delete_event(db: Session, event_id: str, cascade: bool = False) -> int:
        """Delete an event.

        Refuses while passes exist unless cascade is set, in which case the
        passes go first. Scan and email logs are never deleted. Returns the
        number of passes removed.
        """
        EventService.get_event(db, event_id)
        pass_count = PassRepo.count_for_event(db, event_id)
        if pass_count and not cascade:
            raise EventHasPasses(event_id, pass_count)

        removed = PassRepo.delete_for_event(db, event_id) if pass_count else 0
        EventRepo.delete(db, event_id)
        logger.info(f"Event {event_id} deleted ({removed} passes removed)")
        return removed
