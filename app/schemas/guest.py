"""
Guest and pass Pydantic schemas
"""

from typing import Optional
from pydantic import BaseModel, EmailStr

class GuestCreate(BaseModel):
    """Schema for adding a single guest"""
    name: str
    email: EmailStr

class BulkImportRequest(BaseModel):
    """Free-text import, one `Name, Email` per line"""
    text: str

class SheetImportRequest(BaseModel):
    """Import guests from a Google Sheets range"""
    sheet_id: str
    range: Optional[str] = None

class ImportResult(BaseModel):
    """Outcome of a bulk or spreadsheet import"""
    imported: int = 0
    skipped_duplicates: int = 0
    skipped_invalid: int = 0
