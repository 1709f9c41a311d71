"""
Tests for event management
"""

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base
from app.schemas.event import EventCreate, EventUpdate
from app.services.event_service import EventHasPasses, EventNotFound, EventService
from app.services.guest_service import GuestService
from app.services.repositories import PassRepo, ScanLogRepo
from app.services.stats_service import StatsService

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_events.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def event(db_session):
    return EventService.create_event(
        db_session,
        EventCreate(title="Gala", description="Annual dinner", accent_color="#FFD43B", qr_prefix="gala"),
        "admin-1",
    )

class TestEventCreate:
    """Test event creation and validation"""

    def test_prefix_normalized(self, event):
        assert event["qr_prefix"] == "GALA"
        assert event["admin_id"] == "admin-1"
        assert event["created_at"] is not None

    def test_default_prefix(self, db_session):
        event = EventService.create_event(db_session, EventCreate(title="Plain"), None)
        assert event["qr_prefix"] == "QRP"

    @pytest.mark.parametrize("prefix", ["", "TOOLONG", "A-B", "ÄB"])
    def test_invalid_prefix_rejected(self, prefix):
        with pytest.raises(ValidationError):
            EventCreate(title="Gala", qr_prefix=prefix)

class TestEventUpdate:
    """Test branding updates"""

    def test_update_only_given_fields(self, db_session, event):
        updated = EventService.update_event(db_session, event["id"], EventUpdate(bg_color="#000000"))

        assert updated["bg_color"] == "#000000"
        assert updated["description"] == "Annual dinner"
        assert updated["qr_prefix"] == "GALA"

    def test_update_missing_event(self, db_session):
        with pytest.raises(EventNotFound):
            EventService.update_event(db_session, "missing", EventUpdate(title="x"))

    @pytest.mark.parametrize("fields", [{"title": None}, {"title": ""}, {"title": "x" * 256}])
    def test_update_title_validated(self, fields):
        with pytest.raises(ValidationError):
            EventUpdate(**fields)

    def test_update_without_title_leaves_it_unset(self):
        assert EventUpdate(bg_color="#000000").model_dump(exclude_unset=True) == {"bg_color": "#000000"}

class TestEventDelete:
    """Test the deletion policy"""

    def test_empty_event_deleted(self, db_session, event):
        assert EventService.delete_event(db_session, event["id"]) == 0
        with pytest.raises(EventNotFound):
            EventService.get_event(db_session, event["id"])

    def test_event_with_passes_blocked(self, db_session, event):
        GuestService.add_guest(db_session, event, "Ana", "ana@x.com")

        with pytest.raises(EventHasPasses) as exc_info:
            EventService.delete_event(db_session, event["id"])

        assert exc_info.value.pass_count == 1
        assert EventService.get_event(db_session, event["id"])["title"] == "Gala"

    def test_cascade_removes_passes_keeps_logs(self, db_session, event):
        guest_pass = GuestService.add_guest(db_session, event, "Ana", "ana@x.com")
        GuestService.add_guest(db_session, event, "Ben", "ben@x.com")
        ScanLogRepo.append(db_session, {
            "pass_id": guest_pass["id"],
            "scanned_code": guest_pass["code"],
            "scanner_id": "gate-a",
            "status": "valid",
            "event_id": event["id"],
            "guest_name": "Ana",
        })

        assert EventService.delete_event(db_session, event["id"], cascade=True) == 2
        assert PassRepo.count_for_event(db_session, event["id"]) == 0
        assert len(ScanLogRepo.recent(db_session, event_id=event["id"])) == 1

    def test_delete_missing_event(self, db_session):
        with pytest.raises(EventNotFound):
            EventService.delete_event(db_session, "missing")

class TestStats:
    """Test dashboard counts"""

    def test_overview_counts(self, db_session, event):
        guest_pass = GuestService.add_guest(db_session, event, "Ana", "ana@x.com")
        GuestService.add_guest(db_session, event, "Ben", "ben@x.com")
        PassRepo.mark_used(db_session, guest_pass["id"], "gate-a", guest_pass["created_at"])

        stats = StatsService.get_overview(db_session)

        assert stats["total_events"] == 1
        assert stats["total_passes"] == 2
        assert stats["pending_invitations"] == 2
        assert stats["scanned_passes"] == 1
        assert stats["scan_rate"] == 50.0
        assert [e["id"] for e in stats["recent_events"]] == [event["id"]]

    def test_overview_empty(self, db_session):
        stats = StatsService.get_overview(db_session)
        assert stats["total_passes"] == 0
        assert stats["scan_rate"] == 0.0
