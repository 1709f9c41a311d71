"""
Security utilities: operator sessions, role checks and rate limiting
"""

import secrets
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings

# Simple in-memory rate limiter
rate_limiter = defaultdict(list)

security = HTTPBearer()

SUPER_ADMIN = "super_admin"
SCANNER_ADMIN = "scanner_admin"


@dataclass
class AdminSession:
    """Identity of a signed-in operator, handed explicitly to whatever needs it."""
    admin_id: str
    email: str
    role: str
    expires_at: float
    google_access_token: Optional[str] = None
    token: str = field(default_factory=lambda: secrets.token_urlsafe(32))

    @property
    def is_super_admin(self) -> bool:
        return self.role == SUPER_ADMIN

    def is_expired(self, now: Optional[float] = None) -> bool:
        return (now if now is not None else time.time()) >= self.expires_at


class SessionStore:
    """Sessions live from sign-in until sign-out or expiry"""

    def __init__(self, ttl_seconds: Optional[int] = None):
        self.ttl_seconds = ttl_seconds or settings.SESSION_TTL_SECONDS
        self._sessions: Dict[str, AdminSession] = {}

    def create(self, admin: dict, google_access_token: Optional[str] = None) -> AdminSession:
        session = AdminSession(
            admin_id=admin["id"],
            email=admin.get("email", ""),
            role=admin.get("role", SCANNER_ADMIN),
            expires_at=time.time() + self.ttl_seconds,
            google_access_token=google_access_token,
        )
        self._sessions[session.token] = session
        return session

    def get(self, token: str) -> Optional[AdminSession]:
        session = self._sessions.get(token)
        if session and session.is_expired():
            self.invalidate(token)
            return None
        return session

    def invalidate(self, token: str) -> bool:
        return self._sessions.pop(token, None) is not None

    def invalidate_admin(self, admin_id: str) -> int:
        """Drop every session of one admin (role change or removal)"""
        tokens = [t for t, s in self._sessions.items() if s.admin_id == admin_id]
        for token in tokens:
            del self._sessions[token]
        return len(tokens)


session_store = SessionStore()


def get_current_session(credentials: HTTPAuthorizationCredentials = Depends(security)) -> AdminSession:
    """Resolve the bearer token to a live session"""
    session = session_store.get(credentials.credentials)
    if not session:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired or invalid. Please sign in again."
        )
    return session


def require_super_admin(session: AdminSession = Depends(get_current_session)) -> AdminSession:
    """Restrict a route to super admins"""
    if not session.is_super_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super admin access required"
        )
    return session


def rate_limit_check(client_ip: str, limit: int = None) -> bool:
    """Simple rate limiting by IP address"""
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE

    current_time = time.time()
    minute_ago = current_time - 60

    # Clean old requests
    rate_limiter[client_ip] = [
        req_time for req_time in rate_limiter[client_ip]
        if req_time > minute_ago
    ]

    # Check limit
    if len(rate_limiter[client_ip]) >= limit:
        return False

    # Add current request
    rate_limiter[client_ip].append(current_time)
    return True

def get_client_ip(request) -> str:
    """Extract client IP from request"""
    # Check for forwarded IP first (for reverse proxy setups)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    # Check for real IP header
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    # Fall back to direct client IP
    return request.client.host
