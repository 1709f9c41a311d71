"""
Pass model - one guest's entry credential for one event
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey

from app.core.db import Base

class Pass(Base):
    __tablename__ = "passes"

    id = Column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    code = Column(String(20), unique=True, nullable=False, index=True)
    guest_name = Column(String(255), nullable=False)
    guest_email = Column(String(255), nullable=False)
    sheet_id = Column(String(255), nullable=True)
    sent_at = Column(DateTime, nullable=True)
    used = Column(Boolean, nullable=False, default=False)
    scanned_at = Column(DateTime, nullable=True)
    scanned_by = Column(String(128), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
