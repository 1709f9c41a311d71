"""
Event model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime

from app.core.db import Base

class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    admin_id = Column(String(128), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    logo_url = Column(String(1024), nullable=True)
    bg_image_url = Column(String(1024), nullable=True)
    bg_color = Column(String(20), nullable=True)
    accent_color = Column(String(20), nullable=True)
    qr_prefix = Column(String(4), nullable=False, default="QRP")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Passes are not a cascading relationship: deletion policy lives in EventService
