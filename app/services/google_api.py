"""
Gmail and Google Sheets REST clients authorized with an operator's OAuth access token
"""

import base64
import logging
from email.mime.text import MIMEText
from enum import Enum
from typing import Any, List, Optional
from urllib.parse import quote

import requests
from google.auth.exceptions import RefreshError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2.credentials import Credentials

from app.core.config import settings

logger = logging.getLogger(__name__)


class SendErrorKind(str, Enum):
    INVALID_RECIPIENT = "invalid_recipient"
    QUOTA_EXCEEDED = "quota_exceeded"
    PERMISSION_DENIED = "permission_denied"
    TOKEN_EXPIRED = "token_expired"
    UNKNOWN = "unknown"


# (HTTP status, Google error reason) -> kind; a None reason matches any reason for that status
ERROR_KINDS = {
    (400, "invalidArgument"): SendErrorKind.INVALID_RECIPIENT,
    (400, "failedPrecondition"): SendErrorKind.PERMISSION_DENIED,
    (401, None): SendErrorKind.TOKEN_EXPIRED,
    (403, "dailyLimitExceeded"): SendErrorKind.QUOTA_EXCEEDED,
    (403, "quotaExceeded"): SendErrorKind.QUOTA_EXCEEDED,
    (403, "rateLimitExceeded"): SendErrorKind.QUOTA_EXCEEDED,
    (403, "userRateLimitExceeded"): SendErrorKind.QUOTA_EXCEEDED,
    (403, "insufficientPermissions"): SendErrorKind.PERMISSION_DENIED,
    (403, "forbidden"): SendErrorKind.PERMISSION_DENIED,
    (403, None): SendErrorKind.PERMISSION_DENIED,
    (429, None): SendErrorKind.QUOTA_EXCEEDED,
}

KIND_MESSAGES = {
    SendErrorKind.INVALID_RECIPIENT: "Invalid email address - recipient rejected",
    SendErrorKind.QUOTA_EXCEEDED: "Sending quota exceeded - try again later",
    SendErrorKind.PERMISSION_DENIED: "Permission denied - check sharing and granted scopes",
    SendErrorKind.TOKEN_EXPIRED: "Access token expired or invalid - sign in again",
}


class GoogleApiError(Exception):
    """A Google API call failed; `kind` is the translated cause."""

    def __init__(self, message: str, kind: SendErrorKind = SendErrorKind.UNKNOWN, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class SendError(GoogleApiError):
    pass


class SheetsError(GoogleApiError):
    pass


def translate_error(status_code: int, reason: Optional[str]) -> SendErrorKind:
    """Look up the error kind for a Google API error response."""
    return ERROR_KINDS.get((status_code, reason)) or ERROR_KINDS.get((status_code, None)) or SendErrorKind.UNKNOWN


def _error_details(response: requests.Response) -> tuple[Optional[str], str]:
    try:
        error = response.json().get("error", {})
    except ValueError:
        return None, response.reason or f"HTTP {response.status_code}"
    errors = error.get("errors") or [{}]
    return errors[0].get("reason"), error.get("message") or response.reason or ""


def _raise_for_response(response: requests.Response, error_cls, action: str) -> None:
    if response.ok:
        return
    reason, message = _error_details(response)
    kind = translate_error(response.status_code, reason)
    summary = KIND_MESSAGES.get(kind, f"Failed to {action}")
    raise error_cls(f"{summary}: {message}", kind=kind, status_code=response.status_code)


def authorized_session(access_token: str) -> AuthorizedSession:
    return AuthorizedSession(Credentials(token=access_token))


class GmailClient:
    """Mail-send capability backed by the Gmail API"""

    def __init__(self, access_token: str, http: Optional[requests.Session] = None):
        self.http = http or authorized_session(access_token)

    @staticmethod
    def build_raw_message(to: str, subject: str, html: str) -> str:
        msg = MIMEText(html, "html", "utf-8")
        msg["To"] = to
        msg["Subject"] = subject
        return base64.urlsafe_b64encode(msg.as_bytes()).decode("ascii").rstrip("=")

    def send(self, to: str, subject: str, html: str) -> None:
        payload = {"raw": self.build_raw_message(to, subject, html)}
        try:
            response = self.http.post(settings.GMAIL_API_URL, json=payload, timeout=30)
        except RefreshError as e:
            raise SendError(f"{KIND_MESSAGES[SendErrorKind.TOKEN_EXPIRED]}: {e}", kind=SendErrorKind.TOKEN_EXPIRED)
        except requests.RequestException as e:
            raise SendError(f"Network error sending email: {e}")
        _raise_for_response(response, SendError, "send email")
        logger.info(f"Email sent to {to}")


class SheetsClient:
    """Spreadsheet capability backed by the Google Sheets API"""

    TRACKING_SHEET_TITLE = "Email List"
    TRACKING_HEADER = ["Name", "Email", "Status", "Timestamp"]

    def __init__(self, access_token: str, http: Optional[requests.Session] = None):
        self.http = http or authorized_session(access_token)

    def _request(self, method: str, url: str, action: str, **kwargs) -> Any:
        try:
            response = self.http.request(method, url, timeout=30, **kwargs)
        except RefreshError as e:
            raise SheetsError(f"{KIND_MESSAGES[SendErrorKind.TOKEN_EXPIRED]}: {e}", kind=SendErrorKind.TOKEN_EXPIRED)
        except requests.RequestException as e:
            raise SheetsError(f"Network error: unable to reach Google Sheets API: {e}")
        _raise_for_response(response, SheetsError, action)
        return response.json()

    def read_range(self, spreadsheet_id: str, cell_range: str) -> List[List[str]]:
        url = f"{settings.SHEETS_API_URL}/{spreadsheet_id}/values/{quote(cell_range, safe='')}"
        data = self._request("GET", url, "read sheet")
        return data.get("values", [])

    def update_range(self, spreadsheet_id: str, cell_range: str, values: List[List[Any]]) -> None:
        url = f"{settings.SHEETS_API_URL}/{spreadsheet_id}/values/{quote(cell_range, safe='')}"
        self._request("PUT", url, "update sheet", params={"valueInputOption": "USER_ENTERED"}, json={"values": values})

    def create_sheet(self, title: str) -> str:
        """Create a spreadsheet with a tracking tab and header row; returns its id."""
        body = {
            "properties": {"title": title},
            "sheets": [
                {
                    "properties": {
                        "title": self.TRACKING_SHEET_TITLE,
                        "gridProperties": {"rowCount": 1000, "columnCount": len(self.TRACKING_HEADER)},
                    }
                }
            ],
        }
        data = self._request("POST", settings.SHEETS_API_URL, "create sheet", json=body)
        spreadsheet_id = data["spreadsheetId"]
        self.update_range(spreadsheet_id, f"{self.TRACKING_SHEET_TITLE}!A1:D1", [self.TRACKING_HEADER])
        logger.info(f"Tracking sheet {spreadsheet_id} created")
        return spreadsheet_id
