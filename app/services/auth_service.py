"""
Operator sign-in and admin profile management
"""

import logging
import secrets
from typing import List, Optional

from firebase_admin import auth as firebase_auth
from sqlalchemy.orm import Session

from app.core.config import settings
from app.services.firebase_client import verify_id_token
from app.services.repositories import AdminRepo
from app.utils.security import SCANNER_ADMIN, SUPER_ADMIN, AdminSession, SessionStore

logger = logging.getLogger(__name__)

DEV_ADMIN_UID = "local-admin"
DEV_ADMIN_EMAIL = "admin@localhost"


class AuthenticationError(Exception):
    pass


class AuthService:
    """Service for sessions and admin profiles"""

    @staticmethod
    def _identify(id_token: str) -> tuple[str, str, Optional[str]]:
        """Return (uid, email, forced role) for an ID token"""
        if not settings.USE_FIREBASE:
            if secrets.compare_digest(id_token, settings.ADMIN_TOKEN):
                return DEV_ADMIN_UID, DEV_ADMIN_EMAIL, SUPER_ADMIN
            raise AuthenticationError("Invalid sign-in token")
        try:
            claims = verify_id_token(id_token)
        except (firebase_auth.InvalidIdTokenError, ValueError) as e:
            raise AuthenticationError(f"Invalid ID token: {e}")
        return claims["uid"], claims.get("email", ""), None

    @staticmethod
    def fetch_admin_profile(db: Session, uid: str, email: str, role: Optional[str] = None,
                            google_linked: bool = False) -> dict:
        """Fetch an admin profile, creating a scanner admin on first sign-in"""
        admin = AdminRepo.get(db, uid)
        if admin:
            if google_linked and not admin.get("google_linked"):
                admin = AdminRepo.update(db, uid, {"google_linked": True}) or admin
            return admin
        logger.info(f"Creating admin profile for {uid}")
        return AdminRepo.create(db, uid, email, role or SCANNER_ADMIN, google_linked)

    @staticmethod
    def sign_in(db: Session, store: SessionStore, id_token: str,
                google_access_token: Optional[str] = None) -> AdminSession:
        uid, email, role = AuthService._identify(id_token)
        admin = AuthService.fetch_admin_profile(db, uid, email, role, bool(google_access_token))
        session = store.create(admin, google_access_token)
        logger.info(f"Session opened for {admin['id']} ({admin['role']})")
        return session

    @staticmethod
    def sign_out(store: SessionStore, token: str) -> bool:
        closed = store.invalidate(token)
        if closed:
            logger.info("Session closed")
        return closed

    @staticmethod
    def list_admins(db: Session) -> List[dict]:
        return AdminRepo.list(db)

    @staticmethod
    def create_admin(db: Session, uid: str, email: str, role: str) -> dict:
        if AdminRepo.get(db, uid):
            raise ValueError(f"Admin {uid} already exists")
        return AdminRepo.create(db, uid, email, role)

    @staticmethod
    def change_role(db: Session, store: SessionStore, uid: str, role: str) -> Optional[dict]:
        admin = AdminRepo.update(db, uid, {"role": role})
        if admin:
            store.invalidate_admin(uid)
        return admin

    @staticmethod
    def remove_admin(db: Session, store: SessionStore, uid: str) -> bool:
        """Remove the profile only; the identity-provider account is left in place"""
        removed = AdminRepo.delete(db, uid)
        if removed:
            store.invalidate_admin(uid)
        return removed
