from datetime import datetime
from typing import List, Optional, Protocol

from app.models.booking import Booking, BookingRequest, utc_now


class BookingStore(Protocol):
    """Storage seam for bookings. Implementations assign ids."""

    def append(self, request: BookingRequest, created_at: Optional[datetime] = None) -> Booking: ...

    def list(self) -> List[Booking]: ...

    def get(self, booking_id: int) -> Optional[Booking]: ...


class InMemoryBookingStore:
    """
    Append-only, process local booking list.
    Contents are lost on restart.
    """

    def __init__(self, first_id: int = 1):
        self._bookings: List[Booking] = []
        self._next_id = first_id

    def append(self, request: BookingRequest, created_at: Optional[datetime] = None) -> Booking:
        # No await between reading and bumping the counter, so concurrent requests can't share an id
        booking = Booking(
            id=self._next_id,
            created_at=created_at or utc_now(),
            **request.model_dump(),
        )
        self._next_id += 1
        self._bookings.append(booking)
        return booking

    def list(self) -> List[Booking]:
        return list(self._bookings)

    def get(self, booking_id: int) -> Optional[Booking]:
        for booking in self._bookings:
            if booking.id == booking_id:
                return booking
        return None

    def __len__(self) -> int:
        return len(self._bookings)
