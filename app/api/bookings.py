from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.services.booking_service import BookingService

router = APIRouter()

BOOKING_API_PATH = "/api/bookings"


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking_service


async def _read_json(request: Request) -> Any:
    # Bodies that aren't valid JSON are treated like empty submissions
    try:
        return await request.json()
    except ValueError:
        return {}


@router.get(BOOKING_API_PATH)
async def list_bookings(service: BookingService = Depends(get_booking_service)):
    bookings = service.list_bookings()
    return {"count": len(bookings), "bookings": [booking.to_json() for booking in bookings]}


@router.get(BOOKING_API_PATH + "/{booking_id}")
async def get_booking(booking_id: int, service: BookingService = Depends(get_booking_service)):
    booking = service.get_booking(booking_id)
    if booking is None:
        return JSONResponse(status_code=404, content={"message": "Booking not found."})
    return booking.to_json()


@router.post(BOOKING_API_PATH)
@router.post("/book")
async def create_booking(request: Request, service: BookingService = Depends(get_booking_service)):
    payload = await _read_json(request)
    outcome = await service.create_booking(payload)

    if outcome.email_sent:
        return JSONResponse(
            status_code=201,
            content={
                "message": "Booking created and confirmation email sent.",
                "booking": outcome.booking.to_json(),
                "email": outcome.email_json(),
            },
        )

    # Partial success: the booking exists, only the email is missing
    return JSONResponse(
        status_code=502,
        content={
            "message": "Booking created, but confirmation email failed.",
            "booking": outcome.booking.to_json(),
            "email": outcome.email_json(),
        },
    )
