"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./qr_passes.db")
    USE_FIREBASE: bool = os.getenv("USE_FIREBASE", "false").lower() in ("1", "true", "yes")
    FIREBASE_CREDENTIALS_JSON: str | None = os.getenv("FIREBASE_CREDENTIALS_JSON")
    FIREBASE_CREDENTIALS_FILE: str | None = os.getenv("FIREBASE_CREDENTIALS_FILE")
    FIREBASE_CREDENTIALS_B64: str | None = os.getenv("FIREBASE_CREDENTIALS_B64")

    # Security
    ADMIN_TOKEN: str = os.getenv("ADMIN_TOKEN", "admin_token_123")
    SESSION_TTL_SECONDS: int = 3600

    # Application
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8000")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    # File limits
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 30

    # Passes
    DEFAULT_QR_PREFIX: str = "QRP"
    CODE_MAX_ATTEMPTS: int = 5
    SCAN_COOLDOWN_SECONDS: float = 2.0
    SCAN_HISTORY_LIMIT: int = 100

    # Invitations
    SEND_DELAY_SECONDS: float = 1.0
    MAIL_FROM_NAME: str = "Event Team"
    DEFAULT_SHEET_RANGE: str = "Email List!A:B"
    GMAIL_API_URL: str = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"
    SHEETS_API_URL: str = "https://sheets.googleapis.com/v4/spreadsheets"

    class Config:
        env_file = ".env"

settings = Settings()
