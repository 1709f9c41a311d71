"""
Database models package
"""

from .admin import Admin
from .event import Event
from .guest_pass import Pass
from .logs import EmailLog, ScanLog
from .email_preset import EmailPreset

__all__ = ["Admin", "Event", "Pass", "ScanLog", "EmailLog", "EmailPreset"]
