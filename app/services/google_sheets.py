"""
Google Sheets Service
Keeps one row per booking in a spreadsheet tab
"""
import logging
import re
import threading
from datetime import datetime, timezone
from typing import Callable, Optional
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from app.config import settings
from app.models.booking import (
    BOOKING_COLUMNS,
    SHEET_TRUE,
    Booking,
    normalize_phone,
    parse_iso,
)
from app.services.google_credentials import load_credentials

logger = logging.getLogger(__name__)


class SheetsServiceError(Exception):
    """Failed to read or write the bookings spreadsheet."""


def a1_range(tab: str, cell: str | None = None) -> str:
    """Quote the tab name when it is not a plain identifier: 'My Tab'!A1"""
    if not re.fullmatch(r"\w+", tab):
        tab = "'" + tab.replace("'", "''") + "'"
    return f"{tab}!{cell}" if cell else tab


def column_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA"""
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


class BookingSheetService:
    """Service to read and patch booking rows in Google Sheets"""

    # Serializes read-modify-write sequences inside this process
    _write_lock = threading.Lock()

    def __init__(self, service=None, spreadsheet_id: str | None = None, tab: str | None = None):
        self.spreadsheet_id = spreadsheet_id or settings.google_sheet_id
        self.tab = tab or settings.google_sheet_tab
        self.service = service
        if self.service is None:
            self._init_service()

    def _init_service(self):
        """Initialize Google Sheets API service"""
        if not self.spreadsheet_id:
            raise ValueError("GOOGLE_SHEET_ID not set")
        credentials = load_credentials()
        self.service = build("sheets", "v4", credentials=credentials, cache_discovery=False)

    def _values(self):
        return self.service.spreadsheets().values()

    def _execute(self, request, action: str):
        try:
            return request.execute()
        except HttpError as e:
            detail = e.content.decode("utf-8", "replace") if e.content else str(e)
            logger.error(f"Sheets API error while {action}: {detail}")
            raise SheetsServiceError(f"Sheets API error while {action}: {e}") from e

    # ===================
    # LOW LEVEL
    # ===================

    def read_all(self) -> tuple[list[str], list[list[str]]]:
        """
        Read the header row and every data row of the tab.

        Writes the fixed header when the sheet is still empty.

        Returns:
            (headers, rows)
        """
        result = self._execute(
            self._values().get(spreadsheetId=self.spreadsheet_id, range=a1_range(self.tab)),
            "reading bookings",
        )
        values = result.get("values", [])

        if not values or not any(values[0]):
            logger.info(f"Initializing header row of '{self.tab}'")
            self._execute(
                self._values().update(
                    spreadsheetId=self.spreadsheet_id,
                    range=a1_range(self.tab, "A1"),
                    valueInputOption="RAW",
                    body={"values": [BOOKING_COLUMNS]},
                ),
                "writing header row",
            )
            return list(BOOKING_COLUMNS), []

        headers = [str(h).strip() for h in values[0]]
        return headers, values[1:]

    def find_row_index(
        self,
        column: str,
        value: str,
        normalize: Optional[Callable[[str], str]] = None,
        headers: list[str] | None = None,
        rows: list[list[str]] | None = None,
    ) -> Optional[int]:
        """
        Find the sheet row number (header is row 1) whose column matches value.

        Returns:
            Row number of the first match, or None if no row matches
        """
        matches = self.find_row_indexes(column, value, normalize, headers, rows)
        return matches[0] if matches else None

    def find_row_indexes(
        self,
        column: str,
        value: str,
        normalize: Optional[Callable[[str], str]] = None,
        headers: list[str] | None = None,
        rows: list[list[str]] | None = None,
    ) -> list[int]:
        """Sheet row numbers of every row whose column matches value"""
        if headers is None or rows is None:
            headers, rows = self.read_all()
        if column not in headers:
            return []

        normalize = normalize or (lambda v: str(v).strip())
        wanted = normalize(value)
        if not wanted:
            return []

        col = headers.index(column)
        return [
            offset + 2
            for offset, row in enumerate(rows)
            if normalize(row[col] if col < len(row) else "") == wanted
        ]

    def append_row(self, patch: dict, headers: list[str] | None = None) -> None:
        """Append a new row built from patch, ordered by the current headers"""
        if headers is None:
            headers, _ = self.read_all()

        unknown = set(patch) - set(headers)
        if unknown:
            logger.warning(f"Ignoring unknown columns on append: {sorted(unknown)}")

        row = [str(patch.get(header, "")) for header in headers]
        self._execute(
            self._values().append(
                spreadsheetId=self.spreadsheet_id,
                range=a1_range(self.tab, "A1"),
                valueInputOption="RAW",
                insertDataOption="INSERT_ROWS",
                body={"values": [row]},
            ),
            "appending row",
        )

    def update_cells(self, row_number: int, patch: dict, headers: list[str] | None = None) -> None:
        """Patch named columns of an existing row with one batch update"""
        if headers is None:
            headers, _ = self.read_all()

        data = []
        for column, value in patch.items():
            if column not in headers:
                logger.warning(f"Ignoring unknown column on update: {column}")
                continue
            cell = a1_range(self.tab, f"{column_letter(headers.index(column))}{row_number}")
            data.append({"range": cell, "values": [[str(value)]]})

        if not data:
            return

        self._execute(
            self._values().batchUpdate(
                spreadsheetId=self.spreadsheet_id,
                body={"valueInputOption": "RAW", "data": data},
            ),
            f"updating row {row_number}",
        )

    # ===================
    # BOOKINGS
    # ===================

    def list_bookings(self) -> list[Booking]:
        headers, rows = self.read_all()
        return [Booking.from_row(headers, row) for row in rows if any(row)]

    def list_bookings_with_rows(self) -> list[tuple[int, Booking]]:
        headers, rows = self.read_all()
        return [
            (offset + 2, Booking.from_row(headers, row))
            for offset, row in enumerate(rows)
            if any(row)
        ]

    def upsert_booking(self, booking_id: str, patch: dict) -> bool:
        """
        Create the booking row if absent, else patch the given columns.

        Returns:
            True if a new row was appended
        """
        with self._write_lock:
            headers, rows = self.read_all()
            row_number = self.find_row_index("booking_id", booking_id, headers=headers, rows=rows)

            if row_number is None:
                self.append_row({**patch, "booking_id": booking_id}, headers=headers)
                logger.info(f"Booking {booking_id} created")
                return True

            self.update_cells(row_number, patch, headers=headers)
            logger.info(f"Booking {booking_id} updated (row {row_number})")
            return False

    def _current_booking_for_phone(
        self,
        phone: str,
        headers: list[str],
        rows: list[list[str]],
        now: datetime | None = None,
    ) -> tuple[Optional[int], Optional[Booking]]:
        """
        Pick the booking a guest is most likely talking about.

        A repeat guest has several rows with the same phone. Bookings still
        waiting for documents win over completed ones; among those, the
        nearest upcoming check-in wins, else the last row in the sheet.
        """
        matches = self.find_row_indexes(
            "guest_phone", phone, normalize=normalize_phone, headers=headers, rows=rows
        )
        if not matches:
            return None, None

        now = now or datetime.now(timezone.utc)
        candidates = [(row_number, Booking.from_row(headers, rows[row_number - 2])) for row_number in matches]
        pending = [c for c in candidates if not c[1].has_documents] or candidates

        upcoming = []
        for row_number, booking in pending:
            checkin = parse_iso(booking.checkin_at_iso)
            if checkin is not None and checkin >= now:
                upcoming.append((checkin, row_number, booking))

        if upcoming:
            _, row_number, booking = min(upcoming, key=lambda item: (item[0], item[1]))
            return row_number, booking

        return pending[-1]

    def find_booking_by_phone(
        self, phone: str, now: datetime | None = None
    ) -> tuple[Optional[int], Optional[Booking]]:
        headers, rows = self.read_all()
        return self._current_booking_for_phone(phone, headers, rows, now)

    def append_document_link(self, phone: str, link: str, now: datetime | None = None) -> Optional[Booking]:
        """
        Add a document link to the current booking of this phone and mark docs as ok.

        Returns:
            The updated booking, or None if the phone has no booking
        """
        with self._write_lock:
            headers, rows = self.read_all()
            row_number, booking = self._current_booking_for_phone(phone, headers, rows, now)
            if row_number is None:
                logger.info(f"No booking found for {phone}, skipping sheet update")
                return None

            links = booking.docs_link_list
            if link not in links:
                links.append(link)

            patch = {"docs_links": ",".join(links), "docs_ok": SHEET_TRUE}
            self.update_cells(row_number, patch, headers=headers)
            logger.info(f"Booking {booking.booking_id} now has {len(links)} document(s)")
            return booking.model_copy(update=patch)

    def mark_reminded(self, row_number: int, when: datetime) -> None:
        self.update_cells(row_number, {"last_reminder": when.isoformat()})


# Global instance
_sheet_service = None


def get_sheet_service() -> BookingSheetService:
    """Get or create Sheets service instance"""
    global _sheet_service
    if _sheet_service is None:
        _sheet_service = BookingSheetService()
    return _sheet_service
