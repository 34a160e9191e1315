import re
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel

BOOKING_COLUMNS = [
    "booking_id",
    "guest_phone",
    "checkin_at_iso",
    "docs_ok",
    "docs_links",
    "last_reminder",
    "locker_code",
]

SHEET_TRUE = "TRUE"
SHEET_FALSE = "FALSE"


def normalize_phone(phone: str | None) -> str:
    """Keep digits only, so '+351 912 345 678' matches '351912345678'"""
    return re.sub(r"\D", "", phone or "")


def split_links(value: str | None) -> list[str]:
    return [link.strip() for link in (value or "").split(",") if link.strip()]


def parse_iso(value: str | None) -> Optional[datetime]:
    """Parse an ISO timestamp, assuming UTC when it has no offset"""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Booking(BaseModel):
    """One booking row of the spreadsheet"""

    booking_id: str
    guest_phone: str = ""
    checkin_at_iso: str = ""
    docs_ok: str = SHEET_FALSE
    docs_links: str = ""
    last_reminder: str = ""
    locker_code: str = ""

    @classmethod
    def from_row(cls, headers: list[str], values: list[str]) -> "Booking":
        """
        Build a booking from a raw sheet row.

        The Sheets API drops trailing empty cells, so missing and empty cells
        keep the model defaults.
        """
        data = {
            header: str(value)
            for header, value in zip(headers, values)
            if header in BOOKING_COLUMNS and str(value).strip() != ""
        }
        data.setdefault("booking_id", "")
        return cls(**data)

    def to_row(self, headers: list[str]) -> list[str]:
        data = self.model_dump()
        return [data.get(header, "") for header in headers]

    @property
    def docs_link_list(self) -> list[str]:
        return split_links(self.docs_links)

    @property
    def has_documents(self) -> bool:
        return self.docs_ok.strip().upper() == SHEET_TRUE
