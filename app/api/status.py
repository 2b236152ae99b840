from datetime import datetime

from fastapi import APIRouter, Request

from app.api.bookings import BOOKING_API_PATH

router = APIRouter()

RUNNING_MESSAGE = "Garage Services backend is running."


@router.get("/")
async def hello():
    return {"message": "Hello World!"}


@router.get("/health")
async def health_check(request: Request):
    settings = request.app.state.settings
    return {"status": "ok", "environment": settings.ENVIRONMENT, "timestamp": datetime.now().isoformat()}


@router.get("/app")
async def app_info():
    return {"message": RUNNING_MESSAGE, "bookingApi": BOOKING_API_PATH}


@router.get("/app/{path:path}")
async def app_info_for_path(request: Request, path: str):
    return {"message": RUNNING_MESSAGE, "path": request.url.path, "bookingApi": BOOKING_API_PATH}
