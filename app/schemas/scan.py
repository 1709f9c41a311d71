"""
Scan Pydantic schemas
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel

class ScanStatus(str, Enum):
    VALID = "valid"
    ALREADY_USED = "already_used"
    INVALID = "invalid"

class ScanRequest(BaseModel):
    """A decoded QR payload or a manually typed code"""
    code: str

class ScanResult(BaseModel):
    """Classification of a single scan attempt"""
    status: ScanStatus
    message: str
    code: str
    guest_name: Optional[str] = None
    scanned_at: Optional[datetime] = None
    pass_id: Optional[str] = None
    event_id: Optional[str] = None
    event_title: Optional[str] = None
    debounced: bool = False
