"""
JSON envelopes and HTTP error helpers shared by the API routes
"""

from typing import Any, Optional
from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.schemas.common import StandardResponse, ErrorResponse

def _envelope(body: BaseModel, status_code: int) -> JSONResponse:
    return JSONResponse(content=jsonable_encoder(body), status_code=status_code)

def success_response(message: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    """`{"success": true, "message": ..., "data": ...}`"""
    return _envelope(StandardResponse(success=True, message=message, data=data), status_code)

def error_response(
    message: str,
    error_code: Optional[str] = None,
    details: Any = None,
    status_code: int = 400
) -> JSONResponse:
    return _envelope(ErrorResponse(message=message, error_code=error_code, details=details), status_code)

def conflict_response(message: str, error_code: str) -> JSONResponse:
    """409 for requests that clash with stored passes, guests or admins"""
    return error_response(message=message, error_code=error_code, status_code=status.HTTP_409_CONFLICT)

def not_found_error(resource: str = "Resource"):
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource} not found")

def unauthorized_error(message: str = "Unauthorized"):
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)

def rate_limit_error():
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Too many sign-in attempts. Please try again in a minute."
    )
