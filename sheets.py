"""Google Sheets access for the scorer.

`GoogleSheetStore` is the only place that talks to the Sheets API. The rest of
the project addresses cells with A1 strings built by `a1()` and passes plain
lists of rows around, so tests can swap in an in-memory store with the same
methods.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

import gspread
from google.oauth2.service_account import Credentials

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


# ----------------- A1 helpers -----------------


def column_index(letter: str) -> int:
    """Convert a column letter ("A", "H", "AA") to a 0-based index."""
    letter = letter.strip().upper()
    if not letter or not letter.isalpha() or not letter.isascii():
        raise ValueError(f"Invalid column letter: {letter!r}")
    index = 0
    for char in letter:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def column_letter(index: int) -> str:
    """Convert a 0-based column index to its letter."""
    if index < 0:
        raise ValueError(f"Column index must be non-negative, got {index}")
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def quote_sheet(sheet: str) -> str:
    return "'" + sheet.replace("'", "''") + "'"


def a1(sheet: str, ref: str) -> str:
    """Build a sheet-qualified range, e.g. a1("Form Responses 1", "H2")."""
    return f"{quote_sheet(sheet)}!{ref}"


# ----------------- Store -----------------


class GoogleSheetStore:
    """Thin wrapper over one gspread spreadsheet."""

    def __init__(self, client: gspread.Client, spreadsheet_id: str) -> None:
        self._client = client
        self.spreadsheet_id = spreadsheet_id
        self._spreadsheet: gspread.Spreadsheet | None = None

    @classmethod
    def from_service_account(
        cls, credentials_file: str, spreadsheet_id: str
    ) -> "GoogleSheetStore":
        credentials = Credentials.from_service_account_file(
            credentials_file, scopes=SCOPES
        )
        return cls(gspread.authorize(credentials), spreadsheet_id)

    @property
    def spreadsheet(self) -> gspread.Spreadsheet:
        # opening fetches metadata, so defer it to the first real call
        if self._spreadsheet is None:
            self._spreadsheet = self._client.open_by_key(self.spreadsheet_id)
        return self._spreadsheet

    def read_range(self, range_name: str) -> List[List[str]]:
        response = self.spreadsheet.values_get(range_name)
        return response.get("values", [])

    def write_range(
        self,
        range_name: str,
        values: Sequence[Sequence[Any]],
        *,
        formulas: bool = False,
    ) -> None:
        self.spreadsheet.values_update(
            range_name,
            params={"valueInputOption": "USER_ENTERED" if formulas else "RAW"},
            body={"values": [list(row) for row in values]},
        )

    def clear_range(self, range_name: str) -> None:
        self.spreadsheet.values_clear(range_name)

    def find_sheet_id(self, title: str) -> int | None:
        for worksheet in self.spreadsheet.worksheets():
            if worksheet.title == title:
                return worksheet.id
        return None

    def add_sheet(
        self,
        title: str,
        *,
        rows: int,
        cols: int,
        tab_color: Dict[str, float] | None = None,
    ) -> int:
        properties: Dict[str, Any] = {
            "title": title,
            "gridProperties": {"rowCount": rows, "columnCount": cols},
        }
        if tab_color:
            properties["tabColor"] = tab_color
        response = self.spreadsheet.batch_update(
            {"requests": [{"addSheet": {"properties": properties}}]}
        )
        sheet_id = response["replies"][0]["addSheet"]["properties"]["sheetId"]
        logger.info("Created sheet %r (id %s)", title, sheet_id)
        return sheet_id

    def batch_update(self, requests: List[Dict[str, Any]]) -> None:
        self.spreadsheet.batch_update({"requests": requests})
