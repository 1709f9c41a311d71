"""
Sign-in and session routes
"""

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.schemas.admin import LoginRequest
from app.services.auth_service import AuthenticationError, AuthService
from app.utils.responses import rate_limit_error, success_response, unauthorized_error
from app.utils.security import (
    AdminSession, get_client_ip, get_current_session, rate_limit_check, security, session_store
)

router = APIRouter()

@router.post("/login")
async def login(
    request: Request,
    login_data: LoginRequest,
    db: Session = Depends(get_db)
):
    """Exchange an identity-provider ID token for a session token"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        raise rate_limit_error()

    try:
        session = AuthService.sign_in(db, session_store, login_data.id_token, login_data.google_access_token)
    except AuthenticationError as e:
        raise unauthorized_error(str(e))

    return success_response(
        message="Signed in",
        data={
            "token": session.token,
            "admin_id": session.admin_id,
            "email": session.email,
            "role": session.role,
            "expires_at": session.expires_at,
        }
    )

@router.post("/logout")
async def logout(credentials: HTTPAuthorizationCredentials = Depends(security)):
    AuthService.sign_out(session_store, credentials.credentials)
    return success_response(message="Signed out")

@router.get("/me")
async def who_am_i(session: AdminSession = Depends(get_current_session)):
    """Current operator and role"""
    return success_response(
        message="Session active",
        data={
            "admin_id": session.admin_id,
            "email": session.email,
            "role": session.role,
            "google_linked": session.google_access_token is not None,
            "expires_at": session.expires_at,
        }
    )
