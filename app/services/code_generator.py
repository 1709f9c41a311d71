"""
Pass code generation
"""

import logging
import random

from sqlalchemy.orm import Session

from app.core.config import settings
from app.services.repositories import PassRepo

logger = logging.getLogger(__name__)

CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789@#$%&*"
CODE_LENGTH = 6


class CodeCollisionError(RuntimeError):
    """No free code could be minted within the configured attempts."""


def generate_code(prefix: str) -> str:
    """Return `PREFIX-XXXXXX`. Format only: uniqueness is the caller's concern."""
    suffix = "".join(random.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
    return f"{prefix}-{suffix}"


def mint_unique_code(db: Session, prefix: str, max_attempts: int | None = None) -> str:
    """Generate a code that no existing pass carries."""
    attempts = max_attempts or settings.CODE_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        code = generate_code(prefix)
        if not PassRepo.code_exists(db, code):
            return code
        logger.warning(f"Pass code collision on {code} (attempt {attempt}/{attempts})")
    raise CodeCollisionError(f"Could not mint a unique code with prefix {prefix} after {attempts} attempts")
