"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .guest import *
from .scan import *
from .invitation import *
from .admin import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "EventCreate",
    "EventUpdate",
    "GuestCreate",
    "BulkImportRequest",
    "SheetImportRequest",
    "ImportResult",
    "ScanRequest",
    "ScanResult",
    "DispatchRequest",
    "DispatchEntry",
    "DispatchReport",
    "TrackingSheetRequest",
    "PresetCreate",
    "LoginRequest",
    "AdminCreate",
    "AdminRoleUpdate",
]
