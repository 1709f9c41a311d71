"""
Append-only scan and email log models
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime

from app.core.db import Base

class ScanLog(Base):
    __tablename__ = "scan_logs"

    id = Column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    pass_id = Column(String(36), nullable=True, index=True)
    scanned_code = Column(String(255), nullable=False)
    scanner_id = Column(String(128), nullable=False)
    status = Column(String(20), nullable=False)  # valid, already_used, invalid
    event_id = Column(String(36), nullable=True, index=True)
    guest_name = Column(String(255), nullable=True)
    scanned_at = Column(DateTime, default=datetime.utcnow, index=True)


class EmailLog(Base):
    __tablename__ = "email_logs"

    id = Column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    pass_id = Column(String(36), nullable=False, index=True)
    event_id = Column(String(36), nullable=False, index=True)
    recipient_email = Column(String(255), nullable=False)
    subject = Column(String(998), nullable=True)
    status = Column(String(20), nullable=False)  # sent, failed, invalid
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime, default=datetime.utcnow)
