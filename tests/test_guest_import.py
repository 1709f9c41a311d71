"""
Tests for guest import and pass creation
"""

import re
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base
from app.schemas.event import EventCreate
from app.services.event_service import EventService
from app.services.guest_service import DuplicateGuest, GuestService
from app.services.repositories import PassRepo
from app.services.sheet_service import (
    ExcelService, SheetFormat, SheetLayout, build_email_row_map, detect_sheet_format,
    parse_bulk_text, parse_sheet_rows, status_range
)

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_guest_import.db"
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
    return EventService.create_event(db_session, EventCreate(title="Launch Night", qr_prefix="evtx"), "admin-1")

class TestAddGuest:
    """Test single guest creation"""

    def test_add_guest_creates_pending_pass(self, db_session, event):
        guest_pass = GuestService.add_guest(db_session, event, "Ana", "ana@x.com")

        assert re.match(r"^EVTX-[A-Z0-9@#$%&*]{6}$", guest_pass["code"])
        assert guest_pass["used"] is False
        assert guest_pass["sent_at"] is None
        assert guest_pass["scanned_at"] is None

        passes = PassRepo.list_for_event(db_session, event["id"])
        assert len(passes) == 1
        assert passes[0]["guest_name"] == "Ana"
        assert passes[0]["guest_email"] == "ana@x.com"

    def test_duplicate_email_rejected(self, db_session, event):
        GuestService.add_guest(db_session, event, "Ana", "ana@x.com")

        with pytest.raises(DuplicateGuest):
            GuestService.add_guest(db_session, event, "Ana Again", "ANA@x.com ")

    def test_same_email_allowed_in_another_event(self, db_session, event):
        other = EventService.create_event(db_session, EventCreate(title="After Party"), "admin-1")
        GuestService.add_guest(db_session, event, "Ana", "ana@x.com")
        guest_pass = GuestService.add_guest(db_session, other, "Ana", "ana@x.com")

        assert guest_pass["code"].startswith("QRP-")

class TestImportGuests:
    """Test bulk import"""

    def test_import_skips_existing_emails(self, db_session, event):
        GuestService.add_guest(db_session, event, "Ana", "ana@x.com")

        result = GuestService.import_guests(db_session, event, [
            ("Ana", "Ana@X.com"),
            ("Ben", "ben@x.com"),
            ("Ben twice", "ben@x.com"),
        ], skipped_invalid=2)

        assert result.imported == 1
        assert result.skipped_duplicates == 2
        assert result.skipped_invalid == 2
        assert PassRepo.count_for_event(db_session, event["id"]) == 2

    def test_import_records_source_sheet(self, db_session, event):
        GuestService.import_guests(db_session, event, [("Cy", "cy@x.com")], sheet_id="sheet-123")

        guest_pass = PassRepo.list_for_event(db_session, event["id"])[0]
        assert guest_pass["sheet_id"] == "sheet-123"

    def test_imported_codes_are_unique(self, db_session, event):
        guests = [(f"Guest {i}", f"guest{i}@example.com") for i in range(30)]
        GuestService.import_guests(db_session, event, guests)

        codes = [p["code"] for p in PassRepo.list_for_event(db_session, event["id"])]
        assert len(codes) == 30
        assert len(set(codes)) == 30

    def test_list_passes_newest_first(self, db_session, event):
        GuestService.add_guest(db_session, event, "First", "first@x.com")
        GuestService.add_guest(db_session, event, "Second", "second@x.com")

        names = [p["guest_name"] for p in GuestService.list_passes(db_session, event["id"])]
        assert names == ["Second", "First"]

class TestBulkText:
    """Test `Name, Email` line parsing"""

    def test_parse_lines(self):
        guests, skipped = parse_bulk_text("Ana, ana@x.com\n\nBen,ben@x.com\nno email here\n, lost@x.com")

        assert guests == [("Ana", "ana@x.com"), ("Ben", "ben@x.com")]
        assert skipped == 2

class TestSheetFormat:
    """Test spreadsheet layout detection"""

    def test_name_email_with_header(self):
        rows = [["Name", "Email"], ["Ana", "ana@x.com"], ["Ben", "ben@x.com"]]
        layout = detect_sheet_format(rows)

        assert layout == SheetLayout(SheetFormat.NAME_EMAIL, 1)
        guests, skipped = parse_sheet_rows(rows, layout)
        assert guests == [("Ana", "ana@x.com"), ("Ben", "ben@x.com")]
        assert skipped == 0

    def test_email_only_without_header(self):
        rows = [["ana@x.com"], ["ben@x.com"]]
        layout = detect_sheet_format(rows)

        assert layout == SheetLayout(SheetFormat.EMAIL_ONLY, 0)
        guests, _ = parse_sheet_rows(rows)
        assert guests == [("ana", "ana@x.com"), ("ben", "ben@x.com")]

    def test_email_only_with_header(self):
        rows = [["Email"], ["ana@x.com"]]
        layout = detect_sheet_format(rows)

        assert layout.format == SheetFormat.EMAIL_ONLY
        assert layout.header_rows == 1

    def test_rows_without_email_skipped(self):
        rows = [["Name", "Email"], ["Ana", "ana@x.com"], ["Ben", ""], ["", "cy@x.com"]]
        guests, skipped = parse_sheet_rows(rows)

        assert guests == [("Ana", "ana@x.com"), ("cy", "cy@x.com")]
        assert skipped == 1

    def test_empty_sheet(self):
        assert parse_sheet_rows([]) == ([], 0)

    def test_row_map_and_status_range(self):
        rows = [["Name", "Email"], ["Ana", "Ana@x.com"], ["Ben", "ben@x.com"]]
        layout = detect_sheet_format(rows)
        mapping = build_email_row_map(rows, layout)

        assert mapping == {"ana@x.com": 2, "ben@x.com": 3}
        assert status_range("Email List!A:B", layout, 3) == "Email List!C3:D3"
        email_only = SheetLayout(SheetFormat.EMAIL_ONLY, 0)
        assert status_range("Email List!A:B", email_only, 1) == "Email List!B1:C1"

class TestExcel:
    """Test Excel template and export"""

    def test_template_imports_cleanly(self):
        rows = ExcelService.read_rows(ExcelService.create_template())

        assert rows[0] == ["Name", "Email"]
        guests, skipped = parse_sheet_rows(rows)
        assert guests == [
            ("Sample Guest 1", "guest1@example.com"),
            ("Sample Guest 2", "guest2@example.com"),
        ]
        assert skipped == 0

    def test_export_passes(self, db_session, event):
        GuestService.add_guest(db_session, event, "Ana", "ana@x.com")
        content = ExcelService.export_passes(GuestService.list_passes(db_session, event["id"]))

        rows = ExcelService.read_rows(content)
        assert rows[0] == ["Name", "Email", "Code", "Sent", "Used", "Scanned At"]
        assert rows[1][:2] == ["Ana", "ana@x.com"]
        assert rows[1][3:] == ["No", "No", "N/A"]
