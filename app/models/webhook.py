"""
Inbound WhatsApp Cloud API payloads and internal request bodies
"""
from typing import Any, Optional
from pydantic import BaseModel, field_validator

NO_TEXT_PLACEHOLDER = "(sem texto)"
MEDIA_TYPES = ("image", "document")


def _first(items: Any) -> Optional[dict]:
    """First element of a list when it is a dict, else None"""
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return None


class InboundMessage(BaseModel):
    """The single message we act on from a webhook delivery"""

    sender: str
    type: str
    text: str = NO_TEXT_PLACEHOLDER
    media_id: Optional[str] = None
    mime_type: Optional[str] = None
    filename: Optional[str] = None

    @property
    def is_media(self) -> bool:
        return self.type in MEDIA_TYPES and bool(self.media_id)

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["InboundMessage"]:
        """
        Extract the first message of the first change of the first entry.

        Returns None when any level is missing (status updates, malformed
        bodies), which callers treat as "nothing to do".
        """
        if not isinstance(payload, dict):
            return None

        entry = _first(payload.get("entry"))
        change = _first(entry.get("changes")) if entry else None
        value = change.get("value") if change else None
        msg = _first(value.get("messages")) if isinstance(value, dict) else None
        if not msg or not msg.get("from"):
            return None

        msg_type = str(msg.get("type") or "text")
        media = msg.get(msg_type) if msg_type in MEDIA_TYPES else None
        media = media if isinstance(media, dict) else {}

        return cls(
            sender=str(msg["from"]),
            type=msg_type,
            text=extract_text(msg),
            media_id=media.get("id"),
            mime_type=media.get("mime_type"),
            filename=media.get("filename"),
        )


def extract_text(msg: dict) -> str:
    """Text body, else the title of a list/button reply, else a placeholder"""
    text = msg.get("text") or {}
    interactive = msg.get("interactive") or {}
    if not isinstance(text, dict):
        text = {}
    if not isinstance(interactive, dict):
        interactive = {}

    return (
        text.get("body")
        or (interactive.get("list_reply") or {}).get("title")
        or (interactive.get("button_reply") or {}).get("title")
        or NO_TEXT_PLACEHOLDER
    )


class BookingConfirmedRequest(BaseModel):
    """Body of POST /internal/booking-confirmed"""

    booking_id: Optional[str] = None
    guest_phone: Optional[str] = None
    checkin_at_iso: Optional[str] = None

    @field_validator("booking_id", "guest_phone", "checkin_at_iso", mode="before")
    @classmethod
    def _coerce_str(cls, value):
        if value is None:
            return None
        return str(value)

    def missing_required(self) -> bool:
        return not (self.booking_id or "").strip() or not (self.guest_phone or "").strip()
