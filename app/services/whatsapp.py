"""
WhatsApp Cloud API Service
Sends text messages and fetches media sent by guests
"""
import logging
from typing import Optional
import httpx
from app.config import settings

logger = logging.getLogger(__name__)


class WhatsAppServiceError(Exception):
    """A call to the WhatsApp Cloud API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class WhatsAppService:
    """Service to talk to the WhatsApp Cloud API"""

    def __init__(
        self,
        token: str | None = None,
        phone_number_id: str | None = None,
        client: httpx.Client | None = None,
    ):
        self.token = token if token is not None else settings.whatsapp_token
        self.phone_number_id = phone_number_id if phone_number_id is not None else settings.phone_number_id
        self.base_url = f"{settings.graph_api_base_url.rstrip('/')}/{settings.graph_api_version}"
        self.client = client or httpx.Client(timeout=settings.http_timeout_seconds)

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}

    def _request(self, method: str, url: str, action: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"WhatsApp request failed while {action}: {e}")
            raise WhatsAppServiceError(f"HTTP request failed while {action}: {e}") from e

        if response.is_error:
            logger.error(
                f"WhatsApp API error while {action}: {response.status_code} - {response.text}"
            )
            raise WhatsAppServiceError(
                f"WhatsApp API returned {response.status_code} while {action}",
                status_code=response.status_code,
                detail=response.text,
            )
        return response

    def send_text(self, to: str, body: str) -> dict:
        """
        Send a text message.

        Args:
            to: Recipient phone number (digits, as delivered by the webhook)
            body: Message text

        Returns:
            Cloud API response (contains the message id)
        """
        if not self.token or not self.phone_number_id:
            raise WhatsAppServiceError("WHATSAPP_TOKEN / PHONE_NUMBER_ID not configured")

        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": body},
        }
        response = self._request(
            "POST",
            f"{self.base_url}/{self.phone_number_id}/messages",
            f"sending text to {to}",
            json=payload,
        )
        result = response.json()
        message_id = (result.get("messages") or [{}])[0].get("id")
        logger.info(f"Text sent to {to} ({message_id})")
        return result

    def get_media_info(self, media_id: str) -> dict:
        """
        Resolve a media id to its temporary download URL.

        Returns:
            dict with at least 'url' (and usually 'mime_type')
        """
        response = self._request("GET", f"{self.base_url}/{media_id}", f"resolving media {media_id}")
        info = response.json()
        if not info.get("url"):
            raise WhatsAppServiceError(f"Media {media_id} has no download URL", detail=response.text)
        return info

    def download_media(self, url: str) -> tuple[bytes, str]:
        """
        Download media content (the URL requires the bearer token).

        Returns:
            (content, content_type); content_type is "" when the response has none
        """
        response = self._request("GET", url, "downloading media", follow_redirects=True)
        content_type = response.headers.get("content-type", "")
        return response.content, content_type.split(";")[0].strip()

    def close(self):
        self.client.close()


# Global instance
_whatsapp_service = None


def get_whatsapp_service() -> WhatsAppService:
    """Get or create WhatsApp service instance"""
    global _whatsapp_service
    if _whatsapp_service is None:
        _whatsapp_service = WhatsAppService()
    return _whatsapp_service


def close_whatsapp_service():
    """Close the shared HTTP client on shutdown"""
    global _whatsapp_service
    if _whatsapp_service is not None:
        _whatsapp_service.close()
        _whatsapp_service = None
