"""
Inbound message handling
Replies to guests and stores the documents they send
"""
import logging
import mimetypes
from datetime import datetime, timezone
from typing import Optional
from app.config import Settings
from app.models.webhook import InboundMessage
from app.services.google_drive import DriveService
from app.services.google_sheets import BookingSheetService
from app.services.whatsapp import WhatsAppService

logger = logging.getLogger(__name__)

# mimetypes picks odd defaults for some of these (.jpe, .oga)
EXTENSION_OVERRIDES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/heic": ".heic",
    "application/pdf": ".pdf",
    "audio/ogg": ".ogg",
    "text/plain": ".txt",
    "application/octet-stream": ".bin",
}


def guess_extension(content_type: Optional[str]) -> str:
    """File extension for a content type, '.bin' when unknown"""
    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type in EXTENSION_OVERRIDES:
        return EXTENSION_OVERRIDES[content_type]
    return mimetypes.guess_extension(content_type) or ".bin"


def build_filename(message: InboundMessage, content_type: str, now: datetime | None = None) -> str:
    """Keep the filename a guest gave a document, else name it by type and time"""
    if message.filename:
        return message.filename
    now = now or datetime.now(timezone.utc)
    return f"{message.type}_{now.strftime('%Y%m%d%H%M%S')}{guess_extension(content_type)}"


def _safe_send(whatsapp: WhatsAppService, to: str, body: str) -> bool:
    try:
        whatsapp.send_text(to, body)
        return True
    except Exception as e:
        logger.error(f"Failed to send message to {to}: {getattr(e, 'detail', None) or e}")
        return False


def handle_text_message(message: InboundMessage, whatsapp: WhatsAppService, settings: Settings) -> None:
    """Acknowledge a text (or any non-media) message"""
    logger.info(f"Message received from {message.sender}: {message.text}")
    _safe_send(whatsapp, message.sender, settings.ack_template.format(text=message.text))


def handle_media_message(
    message: InboundMessage,
    whatsapp: WhatsAppService,
    sheets: BookingSheetService,
    drive: DriveService,
    settings: Settings,
) -> Optional[str]:
    """
    Store an image/document sent by a guest.

    Flow:
    1. Resolve media id to a download URL and download it
    2. Upload to the guest's Drive folder
    3. Attach the link to the guest's booking (if any)
    4. Confirm to the guest

    Returns:
        Link of the stored document, or None if it could not be stored
    """
    logger.info(f"{message.type.capitalize()} received from {message.sender} ({message.media_id})")

    try:
        info = whatsapp.get_media_info(message.media_id)
        content, content_type = whatsapp.download_media(info["url"])
        content_type = (
            content_type or info.get("mime_type") or message.mime_type or "application/octet-stream"
        )
        filename = build_filename(message, content_type)
        link = drive.upload_guest_document(message.sender, content, filename, content_type)
    except Exception as e:
        logger.error(
            f"Failed to store {message.type} from {message.sender}: "
            f"{getattr(e, 'detail', None) or e}"
        )
        _safe_send(whatsapp, message.sender, settings.document_failed_text)
        return None

    try:
        if sheets.append_document_link(message.sender, link) is None:
            logger.info(f"Document from {message.sender} stored without a matching booking")
    except Exception as e:
        logger.error(f"Failed to record document for {message.sender}: {e}")

    _safe_send(whatsapp, message.sender, settings.document_received_text)
    return link


def handle_webhook_payload(
    payload,
    whatsapp: WhatsAppService,
    sheets_provider,
    drive_provider,
    settings: Settings,
) -> Optional[InboundMessage]:
    """
    Dispatch one webhook delivery.

    The Google services are passed as zero-argument providers so that text
    messages never need Google credentials.

    Returns:
        The message acted on, or None when the payload carried no message
    """
    message = InboundMessage.from_payload(payload)
    if message is None:
        logger.debug("Webhook delivery without messages, ignoring")
        return None

    if message.is_media:
        try:
            sheets = sheets_provider()
            drive = drive_provider()
        except Exception as e:
            logger.error(f"Storage backend unavailable: {e}")
            _safe_send(whatsapp, message.sender, settings.document_failed_text)
            return message
        handle_media_message(message, whatsapp, sheets, drive, settings)
    else:
        handle_text_message(message, whatsapp, settings)

    return message
