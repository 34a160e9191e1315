"""
Pytest configuration and fixtures
"""
import re
from unittest.mock import MagicMock
import pytest
from fastapi.testclient import TestClient
from app.main import app
from app.api import routes
from app.models import BOOKING_COLUMNS
from app.services.google_drive import DriveService
from app.services.google_sheets import BookingSheetService
from app.services.whatsapp import WhatsAppService


def _cell_position(a1: str) -> tuple[int, int]:
    """'Bookings!E3' -> (row index 2, column index 4)"""
    cell = a1.split("!")[-1]
    letters, digits = re.match(r"([A-Z]+)(\d+)", cell).groups()
    col = 0
    for char in letters:
        col = col * 26 + (ord(char) - ord("A") + 1)
    return int(digits) - 1, col - 1


class _Request:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class FakeSheetValues:
    """In-memory stand-in for spreadsheets().values()"""

    def __init__(self, grid: list[list[str]]):
        self.grid = grid
        self.calls = []

    def _set(self, a1: str, value: str):
        row, col = _cell_position(a1)
        while len(self.grid) <= row:
            self.grid.append([])
        line = self.grid[row]
        while len(line) <= col:
            line.append("")
        line[col] = value

    def get(self, spreadsheetId, range):
        self.calls.append(("get", range))
        return _Request(lambda: {"values": [list(r) for r in self.grid]} if self.grid else {})

    def update(self, spreadsheetId, range, valueInputOption, body):
        self.calls.append(("update", range))

        def run():
            row, _ = _cell_position(range)
            while len(self.grid) <= row:
                self.grid.append([])
            self.grid[row] = list(body["values"][0])
            return {}

        return _Request(run)

    def append(self, spreadsheetId, range, valueInputOption, insertDataOption, body):
        self.calls.append(("append", body["values"][0]))

        def run():
            self.grid.extend(list(r) for r in body["values"])
            return {}

        return _Request(run)

    def batchUpdate(self, spreadsheetId, body):
        self.calls.append(("batchUpdate", [d["range"] for d in body["data"]]))

        def run():
            for item in body["data"]:
                self._set(item["range"], item["values"][0][0])
            return {}

        return _Request(run)

    def writes(self) -> list:
        return [call for call in self.calls if call[0] != "get"]


class FakeSheetsApi:
    def __init__(self, grid: list[list[str]] | None = None):
        self.values_resource = FakeSheetValues(grid if grid is not None else [])

    def spreadsheets(self):
        return self

    def values(self):
        return self.values_resource


@pytest.fixture
def sheets_api_factory():
    return FakeSheetsApi


@pytest.fixture
def sheets_api():
    """Sheet with the header and two bookings"""
    return FakeSheetsApi([
        list(BOOKING_COLUMNS),
        ["B-100", "+351 912 345 678", "2030-07-01T15:00:00Z", "FALSE", "https://drive/old", "", ""],
        ["B-200", "447700900123", "2030-07-02T15:00:00Z", "FALSE", "", "", "4321"],
    ])


@pytest.fixture
def sheets(sheets_api):
    return BookingSheetService(service=sheets_api, spreadsheet_id="sheet-id", tab="Bookings")


@pytest.fixture
def whatsapp():
    mock = MagicMock(spec=WhatsAppService)
    mock.send_text.return_value = {"messages": [{"id": "wamid.out"}]}
    mock.get_media_info.return_value = {"url": "https://lookaside.test/media/1", "mime_type": "application/pdf"}
    mock.download_media.return_value = (b"%PDF-1.4", "application/pdf")
    return mock


@pytest.fixture
def drive():
    mock = MagicMock(spec=DriveService)
    mock.upload_guest_document.return_value = "https://drive/new"
    return mock


@pytest.fixture
def client(whatsapp, sheets, drive):
    """Test client with external services replaced"""
    app.dependency_overrides[routes.get_whatsapp_service] = lambda: whatsapp
    app.dependency_overrides[routes.get_sheet_provider] = lambda: (lambda: sheets)
    app.dependency_overrides[routes.get_drive_provider] = lambda: (lambda: drive)
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_payload(message: dict | None) -> dict:
    """Wrap a message the way the Cloud API delivers it"""
    value = {"messaging_product": "whatsapp", "metadata": {"phone_number_id": "999"}}
    if message is not None:
        value["messages"] = [message]
    return {
        "object": "whatsapp_business_account",
        "entry": [{"id": "waba", "changes": [{"field": "messages", "value": value}]}],
    }


@pytest.fixture
def payload_factory():
    return make_payload


# Test markers
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
