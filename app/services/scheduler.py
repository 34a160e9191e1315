"""
APScheduler Service
Reminds guests whose documents are still missing before check-in
"""
import logging
from datetime import datetime, timedelta, timezone
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from app.config import Settings, settings
from app.models.booking import Booking, normalize_phone, parse_iso
from app.services.booking_flow import format_checkin
from app.services.google_sheets import BookingSheetService, get_sheet_service
from app.services.whatsapp import WhatsAppService, get_whatsapp_service

logger = logging.getLogger(__name__)


def is_reminder_due(booking: Booking, now: datetime, config: Settings) -> bool:
    if booking.has_documents or not booking.guest_phone:
        return False

    checkin = parse_iso(booking.checkin_at_iso)
    if checkin is None or not (now <= checkin <= now + timedelta(hours=config.reminder_window_hours)):
        return False

    last = parse_iso(booking.last_reminder)
    return last is None or now - last >= timedelta(hours=config.reminder_interval_hours)


def send_due_reminders(
    sheets: BookingSheetService,
    whatsapp: WhatsAppService,
    config: Settings,
    now: datetime | None = None,
) -> int:
    """
    Send the document reminder to every booking that is due.

    Returns:
        Number of reminders sent
    """
    now = now or datetime.now(timezone.utc)
    sent = 0

    for row_number, booking in sheets.list_bookings_with_rows():
        if not is_reminder_due(booking, now, config):
            continue
        try:
            body = config.reminder_template.format(
                booking_id=booking.booking_id,
                checkin=format_checkin(booking.checkin_at_iso),
            )
            whatsapp.send_text(normalize_phone(booking.guest_phone), body)
            sheets.mark_reminded(row_number, now)
            sent += 1
            logger.info(f"Reminder sent for booking {booking.booking_id}")
        except Exception as e:
            logger.error(f"Error sending reminder for booking {booking.booking_id}: {e}")

    return sent


class SchedulerService:
    """Service to manage background scheduler tasks"""

    def __init__(self, config: Settings = settings):
        self.config = config
        self.scheduler = BackgroundScheduler(timezone="UTC")
        self._setup_jobs()

    def _setup_jobs(self):
        """Setup all background jobs"""
        self.scheduler.add_job(
            self._send_document_reminders,
            IntervalTrigger(minutes=self.config.reminder_check_minutes),
            id="document_reminders",
            name="Send document reminders",
            replace_existing=True,
        )

    def _send_document_reminders(self):
        try:
            sent = send_due_reminders(get_sheet_service(), get_whatsapp_service(), self.config)
            if sent:
                logger.info(f"Document reminders sent: {sent}")
        except Exception as e:
            logger.error(f"Error in document reminders job: {e}")

    def start(self):
        """Start the scheduler"""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Scheduler started")

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")


# Global scheduler instance
_scheduler_service = None


def get_scheduler() -> SchedulerService:
    """Get or create scheduler instance"""
    global _scheduler_service
    if _scheduler_service is None:
        _scheduler_service = SchedulerService()
    return _scheduler_service


def start_scheduler():
    """Start the background scheduler when reminders are enabled"""
    if not settings.reminders_enabled:
        logger.info("Document reminders disabled")
        return
    get_scheduler().start()


def stop_scheduler():
    """Stop the background scheduler"""
    if _scheduler_service is not None:
        _scheduler_service.stop()
