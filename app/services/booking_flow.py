"""
Booking confirmed flow
Creates the booking row and asks the guest for their documents
"""
import logging
from datetime import datetime
from app.config import Settings
from app.models.booking import SHEET_FALSE, normalize_phone
from app.services.google_sheets import BookingSheetService
from app.services.whatsapp import WhatsAppService

logger = logging.getLogger(__name__)


def format_checkin(checkin_at_iso: str | None) -> str:
    """'2025-07-01T15:00:00Z' -> '01/07/2025 15:00', raw value if unparseable"""
    if not checkin_at_iso:
        return "-"
    try:
        checkin = datetime.fromisoformat(checkin_at_iso.replace("Z", "+00:00"))
    except ValueError:
        return checkin_at_iso
    return checkin.strftime("%d/%m/%Y %H:%M")


def confirm_booking(
    booking_id: str,
    guest_phone: str,
    checkin_at_iso: str | None,
    sheets: BookingSheetService,
    whatsapp: WhatsAppService,
    settings: Settings,
) -> bool:
    """
    Upsert the booking with docs pending and send the request-for-documents text.

    Raises whatever the storage or messaging service raises.

    Returns:
        True if a new booking row was created
    """
    patch = {"guest_phone": guest_phone, "docs_ok": SHEET_FALSE}
    # keep a stored check-in when the trigger does not send one
    if checkin_at_iso:
        patch["checkin_at_iso"] = checkin_at_iso
    created = sheets.upsert_booking(booking_id, patch)

    body = settings.request_documents_template.format(
        booking_id=booking_id,
        checkin=format_checkin(checkin_at_iso),
    )
    whatsapp.send_text(normalize_phone(guest_phone), body)
    logger.info(f"Document request sent for booking {booking_id} to {guest_phone}")
    return created
