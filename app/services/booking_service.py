from typing import Any, List, Optional

from app.core.errors import ValidationError
from app.core.logger import logger
from app.models.booking import Booking, BookingOutcome, BookingRequest
from app.services.booking_store import BookingStore, InMemoryBookingStore
from app.services.notification_service import Mailer
from app.services.smtp_errors import classify_smtp_error

REQUIRED_FIELDS = ("customerName", "customerEmail", "serviceType", "appointmentDate")
REQUIRED_FIELDS_MESSAGE = "customerName, customerEmail, serviceType, and appointmentDate are required."


def _text(value: Any) -> str:
    # Only JSON strings count; false, 0 and null are treated as missing
    return value if isinstance(value, str) else ""


class BookingService:
    """
    Owns the booking store and the mailer used for confirmations.
    One instance lives on the application and is shared by all requests.
    """

    def __init__(self, mailer: Mailer, store: Optional[BookingStore] = None):
        self.mailer = mailer
        self.store = store if store is not None else InMemoryBookingStore()

    def parse_submission(self, payload: Any) -> BookingRequest:
        """
        Validates a raw JSON submission.
        Anything that is not a JSON object counts as an empty submission.
        Raises: ValidationError if a required field is missing or blank.
        """
        if not isinstance(payload, dict):
            payload = {}

        values = {field: _text(payload.get(field)) for field in REQUIRED_FIELDS}
        missing = [field for field, value in values.items() if not value.strip()]
        if missing:
            logger.info(f"🚫 Booking rejected, missing: {', '.join(missing)}")
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)

        return BookingRequest(notes=_text(payload.get("notes")), **values)

    async def create_booking(self, payload: Any) -> BookingOutcome:
        """
        Stores the booking, then tries to send the confirmation email.
        The booking stays stored even when the email fails; the outcome says which happened.
        """
        request = self.parse_submission(payload)

        booking = self.store.append(request)
        logger.info(f"📥 Booking {booking.id} stored: {booking.service_type} on {booking.appointment_date}")

        try:
            message_id = await self.mailer.send_booking_confirmation(booking)
        except Exception as exc:
            failure = classify_smtp_error(exc)
            logger.warning(f"⚠️ Booking {booking.id} kept without confirmation email ({failure.code.value})")
            return BookingOutcome(
                booking=booking,
                error_code=failure.code.value,
                error_details=failure.message,
            )

        return BookingOutcome(booking=booking, message_id=message_id)

    def list_bookings(self) -> List[Booking]:
        return self.store.list()

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.store.get(booking_id)
