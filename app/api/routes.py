import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from app.config import Settings, settings
from app.models.webhook import BookingConfirmedRequest
from app.services.booking_flow import confirm_booking
from app.services.google_drive import get_drive_service
from app.services.google_sheets import get_sheet_service
from app.services.message_handler import handle_webhook_payload
from app.services.webhook import verify_subscription
from app.services.whatsapp import WhatsAppService, get_whatsapp_service

logger = logging.getLogger(__name__)

router = APIRouter()


def get_settings() -> Settings:
    return settings


# Google services need credentials, so routes receive a provider and only
# build the service once it is actually needed.
def get_sheet_provider():
    return get_sheet_service


def get_drive_provider():
    return get_drive_service


@router.get("/healthz", response_class=PlainTextResponse)
def health_check():
    """Health check endpoint"""
    return "ok"


@router.get("/webhook")
def verify_webhook(
    hub_mode: Optional[str] = Query(None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(None, alias="hub.challenge"),
    config: Settings = Depends(get_settings),
):
    """Echo the challenge when Meta subscribes the webhook with our verify token"""
    challenge = verify_subscription(hub_mode, hub_verify_token, hub_challenge, config.verify_token)
    if challenge is None:
        logger.warning(f"Webhook verification rejected (mode={hub_mode})")
        return PlainTextResponse("Forbidden", status_code=403)

    logger.info("Webhook verified")
    return PlainTextResponse(challenge, status_code=200)


@router.post("/webhook")
async def receive_webhook(
    request: Request,
    whatsapp: WhatsAppService = Depends(get_whatsapp_service),
    sheet_provider=Depends(get_sheet_provider),
    drive_provider=Depends(get_drive_provider),
    config: Settings = Depends(get_settings),
):
    """
    Receive WhatsApp messages.

    Always answers 200, otherwise Meta keeps redelivering the same event.
    """
    try:
        payload = await request.json()
    except Exception:
        logger.warning("Webhook body is not valid JSON, ignoring")
        return PlainTextResponse("OK", status_code=200)

    try:
        await run_in_threadpool(
            handle_webhook_payload, payload, whatsapp, sheet_provider, drive_provider, config
        )
    except Exception as e:
        logger.error(f"Error processing webhook: {e}", exc_info=True)

    return PlainTextResponse("OK", status_code=200)


@router.post("/internal/booking-confirmed")
async def booking_confirmed(
    request: Request,
    whatsapp: WhatsAppService = Depends(get_whatsapp_service),
    sheet_provider=Depends(get_sheet_provider),
    config: Settings = Depends(get_settings),
):
    """
    Register a confirmed booking and ask the guest for their documents.

    Body: {booking_id, guest_phone, checkin_at_iso}
    """
    try:
        body = await request.json()
        data = BookingConfirmedRequest.model_validate(body)
    except (ValueError, ValidationError):
        return JSONResponse({"ok": False, "error": "invalid JSON body"}, status_code=400)

    if data.missing_required():
        return JSONResponse(
            {"ok": False, "error": "booking_id and guest_phone are required"},
            status_code=400,
        )

    booking_id = data.booking_id.strip()
    guest_phone = data.guest_phone.strip()

    try:
        sheets = await run_in_threadpool(sheet_provider)
        await run_in_threadpool(
            confirm_booking, booking_id, guest_phone, data.checkin_at_iso, sheets, whatsapp, config
        )
    except Exception as e:
        logger.error(f"Error confirming booking {booking_id}: {getattr(e, 'detail', None) or e}")
        return JSONResponse({"ok": False, "error": str(e)}, status_code=500)

    return {"ok": True}


@router.get("/internal/bookings")
def get_bookings(sheet_provider=Depends(get_sheet_provider)):
    """Get all bookings"""
    try:
        bookings = sheet_provider().list_bookings()
    except Exception as e:
        logger.error(f"Error listing bookings: {e}")
        return JSONResponse({"ok": False, "error": str(e)}, status_code=500)

    return [booking.model_dump() for booking in bookings]
