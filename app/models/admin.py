"""
Admin (operator) model
"""

from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime

from app.core.db import Base

class Admin(Base):
    __tablename__ = "admins"

    # Identity-provider uid
    id = Column(String(128), primary_key=True)
    email = Column(String(255), nullable=False, default="")
    role = Column(String(20), nullable=False, default="scanner_admin")
    google_linked = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
