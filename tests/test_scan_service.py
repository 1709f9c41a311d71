"""
Tests for gate scan validation
"""

import asyncio
import threading
import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base
from app.schemas.event import EventCreate
from app.schemas.scan import ScanResult, ScanStatus
from app.services import scan_service as scan_module
from app.services.event_service import EventService
from app.services.guest_service import GuestService
from app.services.repositories import PassRepo, ScanLogRepo
from app.services.scan_service import ScanDebouncer, ScanService

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_scan.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

class RecordingWebSocketManager:
    def __init__(self):
        self.broadcasts = []

    async def broadcast_to_event(self, event_id, message):
        self.broadcasts.append((event_id, message))

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
def ws_manager():
    return RecordingWebSocketManager()

@pytest.fixture
def service(ws_manager):
    return ScanService(ws_manager)

@pytest.fixture
def guest_pass(db_session):
    event = EventService.create_event(db_session, EventCreate(title="Gala", qr_prefix="GALA"), "admin-1")
    return GuestService.add_guest(db_session, event, "Ana", "ana@x.com")

def scan(service, db, code, operator="scanner-1"):
    return asyncio.run(service.validate_scan(db, code, operator))

class TestValidateScan:
    """Test scan classification and pass transitions"""

    def test_unknown_code_is_invalid(self, db_session, service, guest_pass):
        result = scan(service, db_session, "ZZZZ-000000")

        assert result.status == ScanStatus.INVALID
        assert result.message == "Invalid QR Code - Pass Not Found"
        assert result.pass_id is None

        logs = ScanLogRepo.recent(db_session)
        assert len(logs) == 1
        assert logs[0]["pass_id"] is None
        assert logs[0]["scanned_code"] == "ZZZZ-000000"
        assert logs[0]["status"] == "invalid"

        untouched = PassRepo.get(db_session, guest_pass["id"])
        assert untouched["used"] is False
        assert untouched["scanned_at"] is None

    def test_first_scan_valid_second_already_used(self, db_session, service, guest_pass):
        first = scan(service, db_session, guest_pass["code"])

        assert first.status == ScanStatus.VALID
        assert first.message == "Access Granted - Welcome Ana!"
        assert first.guest_name == "Ana"
        assert first.event_title == "Gala"

        stored = PassRepo.get(db_session, guest_pass["id"])
        assert stored["used"] is True
        assert stored["scanned_by"] == "scanner-1"
        assert stored["scanned_at"] == first.scanned_at

        second = scan(service, db_session, guest_pass["code"], operator="scanner-2")

        assert second.status == ScanStatus.ALREADY_USED
        assert second.message == "Already Scanned - Ana"
        assert second.scanned_at == first.scanned_at

        stored = PassRepo.get(db_session, guest_pass["id"])
        assert stored["scanned_at"] == first.scanned_at
        assert stored["scanned_by"] == "scanner-1"

        statuses = [log["status"] for log in ScanLogRepo.recent(db_session)]
        assert sorted(statuses) == ["already_used", "valid"]

    def test_code_is_trimmed(self, db_session, service, guest_pass):
        result = scan(service, db_session, f"  {guest_pass['code']}\n")
        assert result.status == ScanStatus.VALID

    def test_stale_read_loses_the_race(self, db_session, service, guest_pass, monkeypatch):
        # Both scanners read the pass while it was still unused
        stale = PassRepo.get(db_session, guest_pass["id"])
        monkeypatch.setattr(PassRepo, "get_by_code", staticmethod(lambda db, code: dict(stale)))

        results = [scan(service, db_session, guest_pass["code"], operator=op) for op in ("gate-a", "gate-b")]

        assert [r.status for r in results] == [ScanStatus.VALID, ScanStatus.ALREADY_USED]
        assert results[1].scanned_at == results[0].scanned_at
        assert PassRepo.get(db_session, guest_pass["id"])["scanned_by"] == "gate-a"

    def test_simultaneous_scans_admit_once(self, db_session, service, guest_pass):
        gates = 8
        barrier = threading.Barrier(gates)
        results = []

        def gate(operator):
            db = TestingSessionLocal()
            try:
                barrier.wait()
                results.append(scan(service, db, guest_pass["code"], operator=operator))
            finally:
                db.close()

        threads = [threading.Thread(target=gate, args=(f"gate-{i}",)) for i in range(gates)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        statuses = [r.status for r in results]
        assert statuses.count(ScanStatus.VALID) == 1
        assert statuses.count(ScanStatus.ALREADY_USED) == gates - 1

        winner = next(r for r in results if r.status == ScanStatus.VALID)
        assert all(r.scanned_at == winner.scanned_at for r in results)
        db_session.expire_all()
        valid_logs = [log for log in ScanLogRepo.recent(db_session) if log["status"] == "valid"]
        assert len(valid_logs) == 1

    def test_conditional_write_succeeds_once(self, db_session, guest_pass):
        now = datetime.utcnow()
        assert PassRepo.mark_used(db_session, guest_pass["id"], "gate-a", now) is True
        assert PassRepo.mark_used(db_session, guest_pass["id"], "gate-b", now) is False

    def test_storage_error_becomes_invalid_without_log(self, db_session, service, monkeypatch):
        def broken(db, code):
            raise RuntimeError("store unavailable")

        monkeypatch.setattr(PassRepo, "get_by_code", staticmethod(broken))
        result = scan(service, db_session, "GALA-ABCDEF")

        assert result.status == ScanStatus.INVALID
        assert result.message == "Error processing scan: store unavailable"
        assert ScanLogRepo.recent(db_session) == []

    def test_valid_scan_is_broadcast(self, db_session, service, ws_manager, guest_pass):
        scan(service, db_session, guest_pass["code"])

        assert len(ws_manager.broadcasts) == 1
        event_id, message = ws_manager.broadcasts[0]
        assert event_id == guest_pass["event_id"]
        assert message["type"] == "scan"
        assert message["result"]["status"] == "valid"

    def test_invalid_scan_not_broadcast(self, db_session, service, ws_manager):
        scan(service, db_session, "ZZZZ-000000")
        assert ws_manager.broadcasts == []

    def test_recent_scans_filtered_by_event(self, db_session, service, guest_pass):
        scan(service, db_session, guest_pass["code"])
        scan(service, db_session, "ZZZZ-000000")

        assert len(ScanService.recent_scans(db_session)) == 2
        by_event = ScanService.recent_scans(db_session, event_id=guest_pass["event_id"])
        assert [log["status"] for log in by_event] == ["valid"]

class TestScanDebouncer:
    """Test suppression of camera re-reads"""

    @pytest.fixture
    def clock(self, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr(scan_module.time, "monotonic", lambda: now[0])
        return now

    def test_repeat_within_cooldown_is_debounced(self, clock):
        debouncer = ScanDebouncer(cooldown_seconds=2)
        result = ScanResult(status=ScanStatus.VALID, message="ok", code="GALA-ABCDEF")
        debouncer.remember("op", "GALA-ABCDEF", result)

        clock[0] += 1
        repeat = debouncer.recent("op", " GALA-ABCDEF ")
        assert repeat is not None
        assert repeat.debounced is True
        assert repeat.status == ScanStatus.VALID

    def test_other_code_operator_or_expired(self, clock):
        debouncer = ScanDebouncer(cooldown_seconds=2)
        result = ScanResult(status=ScanStatus.VALID, message="ok", code="GALA-ABCDEF")
        debouncer.remember("op", "GALA-ABCDEF", result)

        assert debouncer.recent("op", "GALA-XXXXXX") is None
        assert debouncer.recent("other-op", "GALA-ABCDEF") is None
        clock[0] += 3
        assert debouncer.recent("op", "GALA-ABCDEF") is None
