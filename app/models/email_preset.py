"""
Saved invitation subject/message template
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime

from app.core.db import Base

class EmailPreset(Base):
    __tablename__ = "email_presets"

    id = Column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String(255), nullable=False)
    subject = Column(String(998), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
