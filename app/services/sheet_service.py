"""
Spreadsheet layout detection, guest row parsing and Excel import/export
"""

import io
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd


class SheetFormat(str, Enum):
    NAME_EMAIL = "name_email"  # A: name, B: email
    EMAIL_ONLY = "email_only"  # A: email


@dataclass(frozen=True)
class SheetLayout:
    format: SheetFormat
    header_rows: int


# Status and timestamp columns written back after each send
STATUS_COLUMNS = {
    SheetFormat.NAME_EMAIL: ("C", "D"),
    SheetFormat.EMAIL_ONLY: ("B", "C"),
}

TEMPLATE_COLUMNS = ["Name", "Email"]
EXPORT_COLUMNS = ["Name", "Email", "Code", "Sent", "Used", "Scanned At"]


def _cell(row: Sequence[str], index: int) -> str:
    if index < len(row) and row[index] is not None:
        return str(row[index]).strip()
    return ""


def detect_sheet_format(rows: Sequence[Sequence[str]]) -> SheetLayout:
    """Decide the sheet layout once, from the header row and the first data row."""
    if not rows:
        return SheetLayout(SheetFormat.EMAIL_ONLY, 0)

    first = [_cell(rows[0], i).lower() for i in range(2)]
    has_header = (
        not any("@" in cell for cell in first)
        and any("name" in cell or "email" in cell for cell in first)
    )
    header_rows = 1 if has_header else 0

    if header_rows < len(rows):
        data_row = rows[header_rows]
        if len(data_row) >= 2 and "@" in _cell(data_row, 1):
            return SheetLayout(SheetFormat.NAME_EMAIL, header_rows)
    return SheetLayout(SheetFormat.EMAIL_ONLY, header_rows)


def _email_of(row: Sequence[str], layout: SheetLayout) -> str:
    column = 1 if layout.format == SheetFormat.NAME_EMAIL else 0
    return _cell(row, column)


def parse_sheet_rows(
    rows: Sequence[Sequence[str]],
    layout: Optional[SheetLayout] = None,
) -> Tuple[List[Tuple[str, str]], int]:
    """Turn sheet rows into (name, email) pairs.

    Returns the pairs and the number of data rows skipped for lacking an email.
    """
    layout = layout or detect_sheet_format(rows)
    guests: List[Tuple[str, str]] = []
    skipped = 0
    for row in rows[layout.header_rows:]:
        email = _email_of(row, layout)
        if "@" not in email:
            skipped += 1
            continue
        if layout.format == SheetFormat.NAME_EMAIL:
            name = _cell(row, 0) or email.split("@")[0]
        else:
            name = email.split("@")[0]
        guests.append((name, email))
    return guests, skipped


def parse_bulk_text(text: str) -> Tuple[List[Tuple[str, str]], int]:
    """Parse `Name, Email` lines; lines missing either part are skipped."""
    guests: List[Tuple[str, str]] = []
    skipped = 0
    for line in text.strip().splitlines():
        if not line.strip():
            continue
        parts = [part.strip() for part in line.split(",")]
        name = parts[0] if parts else ""
        email = parts[1] if len(parts) > 1 else ""
        if name and email:
            guests.append((name, email))
        else:
            skipped += 1
    return guests, skipped


def build_email_row_map(rows: Sequence[Sequence[str]], layout: SheetLayout) -> Dict[str, int]:
    """Map lower-cased email -> 1-based sheet row number."""
    mapping: Dict[str, int] = {}
    for index in range(layout.header_rows, len(rows)):
        email = _email_of(rows[index], layout).lower()
        if email:
            mapping.setdefault(email, index + 1)
    return mapping


def status_range(sheet_range: str, layout: SheetLayout, row_number: int) -> str:
    """A1 range of the status/timestamp cell pair for one row."""
    sheet_name = sheet_range.split("!")[0]
    status_col, timestamp_col = STATUS_COLUMNS[layout.format]
    return f"{sheet_name}!{status_col}{row_number}:{timestamp_col}{row_number}"


class ExcelService:
    """Service for handling Excel operations"""

    @staticmethod
    def read_rows(file_content: bytes) -> List[List[str]]:
        """Read the first worksheet as rows of strings, header row included."""
        df = pd.read_excel(io.BytesIO(file_content), header=None, dtype=str, keep_default_na=False)
        df = df.fillna("")
        return [[str(value).strip() for value in row] for row in df.itertuples(index=False)]

    @staticmethod
    def create_template() -> bytes:
        """Create Excel template with the guest import columns"""
        df = pd.DataFrame(
            [
                ["Sample Guest 1", "guest1@example.com"],
                ["Sample Guest 2", "guest2@example.com"],
            ],
            columns=TEMPLATE_COLUMNS,
        )

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Guest List')

        return buffer.getvalue()

    @staticmethod
    def export_passes(passes: List[dict]) -> bytes:
        """Export an event's passes to Excel"""
        data = [
            {
                'Name': p.get("guest_name"),
                'Email': p.get("guest_email"),
                'Code': p.get("code"),
                'Sent': 'Yes' if p.get("sent_at") else 'No',
                'Used': 'Yes' if p.get("used") else 'No',
                'Scanned At': p["scanned_at"].isoformat() if p.get("scanned_at") else 'N/A',
            }
            for p in passes
        ]
        df = pd.DataFrame(data, columns=EXPORT_COLUMNS)

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Guest List')

        return buffer.getvalue()
