"""
Authentication and admin management schemas
"""

from typing import Literal, Optional
from pydantic import BaseModel

Role = Literal["super_admin", "scanner_admin"]

class LoginRequest(BaseModel):
    """Sign-in with an identity-provider ID token"""
    id_token: str
    google_access_token: Optional[str] = None

class AdminCreate(BaseModel):
    """Create an admin profile for an existing identity-provider account"""
    uid: str
    email: str
    role: Role = "scanner_admin"

class AdminRoleUpdate(BaseModel):
    role: Role
