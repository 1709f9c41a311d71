"""
Tests for pass code generation
"""

import re
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base
from app.schemas.event import EventCreate
from app.services import code_generator
from app.services.code_generator import (
    CODE_ALPHABET, CODE_LENGTH, CodeCollisionError, generate_code, mint_unique_code
)
from app.services.event_service import EventService
from app.services.repositories import PassRepo

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_codes.db"
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
def event_with_taken_code(db_session):
    event = EventService.create_event(db_session, EventCreate(title="Gala"), "admin-1")
    PassRepo.create(db_session, {
        "event_id": event["id"],
        "code": "QRP-AAAAAA",
        "guest_name": "Taken",
        "guest_email": "taken@example.com",
    })
    return event

class TestGenerateCode:
    """Test the code format"""

    @pytest.mark.parametrize("prefix", ["QRP", "EVTX", "A", "X9"])
    def test_codes_match_format(self, prefix):
        pattern = re.compile(rf"^{prefix}-[A-Z0-9@#$%&*]{{6}}$")
        for _ in range(200):
            assert pattern.match(generate_code(prefix))

    def test_alphabet(self):
        assert len(CODE_ALPHABET) == 42
        assert len(set(CODE_ALPHABET)) == 42
        assert CODE_LENGTH == 6

    def test_codes_vary(self):
        codes = {generate_code("QRP") for _ in range(50)}
        assert len(codes) > 1

class TestMintUniqueCode:
    """Test collision handling against stored passes"""

    def test_free_code_returned_first_try(self, db_session, monkeypatch):
        monkeypatch.setattr(code_generator, "generate_code", lambda prefix: f"{prefix}-ZZZZZZ")
        assert mint_unique_code(db_session, "QRP") == "QRP-ZZZZZZ"

    def test_retries_after_collision(self, db_session, event_with_taken_code, monkeypatch):
        codes = iter(["QRP-AAAAAA", "QRP-BBBBBB"])
        monkeypatch.setattr(code_generator, "generate_code", lambda prefix: next(codes))

        assert mint_unique_code(db_session, "QRP") == "QRP-BBBBBB"

    def test_gives_up_after_max_attempts(self, db_session, event_with_taken_code, monkeypatch):
        calls = []

        def always_taken(prefix):
            calls.append(prefix)
            return "QRP-AAAAAA"

        monkeypatch.setattr(code_generator, "generate_code", always_taken)

        with pytest.raises(CodeCollisionError):
            mint_unique_code(db_session, "QRP", max_attempts=3)
        assert len(calls) == 3
