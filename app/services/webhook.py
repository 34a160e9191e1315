"""
WhatsApp webhook subscription handshake
"""
import hmac
from typing import Optional


def verify_subscription(
    mode: Optional[str],
    token: Optional[str],
    challenge: Optional[str],
    verify_token: str,
) -> Optional[str]:
    """
    Check the hub.* parameters Meta sends when subscribing the webhook.

    Returns:
        The challenge to echo back, or None if the request must be rejected
    """
    if mode != "subscribe" or token is None or not verify_token:
        return None
    if not hmac.compare_digest(token.encode(), verify_token.encode()):
        return None
    return challenge or ""
