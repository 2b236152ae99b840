import asyncio

import pytest

from app.core.errors import ConfigurationError, NotificationError, NotificationErrorCode, ValidationError
from app.models.booking import BookingRequest
from app.services.booking_service import BookingService
from app.services.booking_store import InMemoryBookingStore
from conftest import VALID_BOOKING, FailingMailer, StubMailer


def test_parse_submission_keeps_raw_values_and_defaults_notes():
    service = BookingService(mailer=StubMailer())

    request = service.parse_submission({
        "customerName": "  Alex Doe ",
        "customerEmail": "alex@example.com",
        "serviceType": "Oil Change",
        "appointmentDate": "2026-03-01T10:00:00Z",
        "notes": None,
    })

    assert request.customer_name == "  Alex Doe "
    assert request.notes == ""


@pytest.mark.parametrize("notes", [5, False, ["a"], {"a": 1}])
def test_parse_submission_drops_non_text_notes(notes):
    service = BookingService(mailer=StubMailer())

    request = service.parse_submission(dict(VALID_BOOKING, notes=notes))

    assert request.notes == ""


@pytest.mark.parametrize("value", [False, 0, 12.5, ["Alex"], {"name": "Alex"}])
def test_parse_submission_treats_non_text_as_missing(value):
    service = BookingService(mailer=StubMailer())

    with pytest.raises(ValidationError):
        service.parse_submission(dict(VALID_BOOKING, customerName=value))


@pytest.mark.parametrize("payload", [None, [], "text", {"customerName": "Alex"}])
def test_parse_submission_rejects_incomplete(payload):
    service = BookingService(mailer=StubMailer())

    with pytest.raises(ValidationError) as exc_info:
        service.parse_submission(payload)

    assert "customerName, customerEmail, serviceType, and appointmentDate are required." == exc_info.value.message


@pytest.mark.asyncio
async def test_create_booking_success():
    mailer = StubMailer("abc@mail")
    service = BookingService(mailer=mailer)

    outcome = await service.create_booking(VALID_BOOKING)

    assert outcome.email_sent is True
    assert outcome.message_id == "abc@mail"
    assert outcome.email_json() == {"sent": True, "messageId": "abc@mail"}
    assert service.list_bookings() == [outcome.booking]
    assert mailer.sent == [outcome.booking]


@pytest.mark.asyncio
async def test_validation_error_stores_nothing():
    mailer = StubMailer()
    service = BookingService(mailer=mailer)

    with pytest.raises(ValidationError):
        await service.create_booking(dict(VALID_BOOKING, serviceType=""))

    assert service.list_bookings() == []
    assert mailer.sent == []


@pytest.mark.asyncio
async def test_mailer_failure_keeps_booking():
    service = BookingService(mailer=FailingMailer(ConfigurationError("Missing required SMTP configuration: SMTP_PASS.")))

    outcome = await service.create_booking(VALID_BOOKING)

    assert outcome.email_sent is False
    assert outcome.error_code == "SMTP_CONFIG_ERROR"
    assert outcome.error_details == "Missing required SMTP configuration: SMTP_PASS."
    assert service.get_booking(outcome.booking.id) == outcome.booking


@pytest.mark.asyncio
async def test_classified_error_is_passed_through():
    error = NotificationError(NotificationErrorCode.UNVERIFIED_SENDER, "Sender is not verified.")
    service = BookingService(mailer=FailingMailer(error))

    outcome = await service.create_booking(VALID_BOOKING)

    assert outcome.email_json() == {
        "sent": False,
        "code": "SMTP_UNVERIFIED_SENDER",
        "details": "Sender is not verified.",
    }


@pytest.mark.asyncio
async def test_concurrent_bookings_get_distinct_ids():
    class SlowMailer:
        async def send_booking_confirmation(self, booking):
            await asyncio.sleep(0.01)
            return f"msg-{booking.id}"

    service = BookingService(mailer=SlowMailer())

    outcomes = await asyncio.gather(*[service.create_booking(VALID_BOOKING) for _ in range(10)])

    ids = sorted(outcome.booking.id for outcome in outcomes)
    assert ids == list(range(1, 11))
    assert [o.message_id for o in outcomes] == [f"msg-{o.booking.id}" for o in outcomes]


def test_store_append_list_get():
    store = InMemoryBookingStore()
    request = BookingRequest(
        customer_name="Alex Doe",
        customer_email="alex@example.com",
        service_type="Oil Change",
        appointment_date="2026-03-01T10:00:00Z",
    )

    first = store.append(request)
    second = store.append(request)

    assert (first.id, second.id) == (1, 2)
    assert store.list() == [first, second]
    assert store.get(2) == second
    assert store.get(3) is None
    assert len(store) == 2


def test_store_list_is_a_copy():
    store = InMemoryBookingStore()
    listing = store.list()
    listing.append("junk")

    assert store.list() == []


def test_booking_serializes_with_camel_case_keys():
    store = InMemoryBookingStore(first_id=41)
    booking = store.append(BookingRequest(
        customer_name="Alex Doe",
        customer_email="alex@example.com",
        service_type="Oil Change",
        appointment_date="2026-03-01T10:00:00Z",
        notes="front left tire",
    ))

    data = booking.to_json()

    assert set(data) == {
        "id", "customerName", "customerEmail", "serviceType", "appointmentDate", "notes", "createdAt",
    }
    assert data["id"] == 41
    assert data["createdAt"].endswith("Z")
