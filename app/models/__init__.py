from app.models.booking import Booking, BOOKING_COLUMNS, SHEET_TRUE, SHEET_FALSE, normalize_phone
from app.models.webhook import InboundMessage, BookingConfirmedRequest

__all__ = [
    "Booking",
    "BOOKING_COLUMNS",
    "SHEET_TRUE",
    "SHEET_FALSE",
    "normalize_phone",
    "InboundMessage",
    "BookingConfirmedRequest",
]
