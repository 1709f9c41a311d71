"""
Event-related Pydantic schemas
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator

class EventCreate(BaseModel):
    """Schema for creating an event"""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    bg_image_url: Optional[str] = None
    bg_color: Optional[str] = None
    accent_color: Optional[str] = None
    qr_prefix: str = "QRP"

    @field_validator("qr_prefix")
    @classmethod
    def normalize_prefix(cls, value: str) -> str:
        value = value.strip().upper()
        if not value or len(value) > 4 or not value.isalnum() or not value.isascii():
            raise ValueError("qr_prefix must be 1-4 letters or digits")
        return value

class EventUpdate(BaseModel):
    """Branding fields an organizer may change after creation"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    bg_image_url: Optional[str] = None
    bg_color: Optional[str] = None
    accent_color: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_null(cls, value: Optional[str]) -> str:
        # Only runs for an explicitly sent title; omitting it leaves the title unchanged
        if value is None:
            raise ValueError("title cannot be null")
        return value
