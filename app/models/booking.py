from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookingRequest(CamelModel):
    customer_name: str
    customer_email: str
    service_type: str
    appointment_date: str
    notes: str = ""


class Booking(BookingRequest):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    created_at: datetime = Field(default_factory=utc_now)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class BookingOutcome(BaseModel):
    """Result of a booking submission: the stored booking plus the email result."""

    booking: Booking
    message_id: Optional[str] = None
    error_code: Optional[str] = None
    error_details: Optional[str] = None

    @property
    def email_sent(self) -> bool:
        return self.error_code is None

    def email_json(self) -> dict:
        if self.email_sent:
            return {"sent": True, "messageId": self.message_id}
        return {"sent": False, "code": self.error_code, "details": self.error_details}
