"""
Invitation dispatch Pydantic schemas
"""

from typing import List, Optional
from pydantic import BaseModel

DEFAULT_MESSAGE = (
    "Dear {NAME},\n\nYou are invited to our event! Please find your personalized "
    "QR pass below.\n\nBest regards,\nEvent Team"
)

class DispatchRequest(BaseModel):
    """Send invitations to every guest of an event without sent_at"""
    subject: str
    message: str = DEFAULT_MESSAGE
    sheet_id: Optional[str] = None
    sheet_range: Optional[str] = None

class DispatchEntry(BaseModel):
    """Outcome for one guest"""
    pass_id: str
    guest_name: str
    recipient_email: str
    status: str  # sent, failed, invalid
    error_message: Optional[str] = None

class DispatchReport(BaseModel):
    """Outcome of one dispatcher run"""
    total: int = 0
    sent: int = 0
    failed: int = 0
    invalid: int = 0
    entries: List[DispatchEntry] = []

class TrackingSheetRequest(BaseModel):
    """Create a Google Sheet to track invitation status"""
    title: str

class PresetCreate(BaseModel):
    """Save a subject/message pair for reuse"""
    name: str
    subject: str
    message: str
