import errno
import os
import socket
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from app.api import bookings, status
from app.core.config import Settings, get_settings
from app.core.errors import ValidationError
from app.core.logger import logger, setup_logging
from app.services.booking_service import BookingService
from app.services.booking_store import BookingStore
from app.services.notification_service import Mailer, NotificationGateway

PORT_FILE = ".server-port"
PID_FILE = ".server-pid"

setup_logging(get_settings().LOG_LEVEL, get_settings().ERROR_LOG_FILE)


def warn_if_smtp_missing(settings: Settings) -> None:
    if not settings.smtp_configured:
        logger.warning(
            "⚠️ SMTP is not configured. Set SMTP_USER/SMTP_PASS/SMTP_FROM "
            "or JAVA_SMTP_USER/JAVA_SMTP_PASS/JAVA_SMTP_FROM."
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 Starting Garage Services Backend")
    warn_if_smtp_missing(app.state.settings)
    yield
    # Shutdown
    logger.info("🛑 Shutting down backend")


def create_app(
    settings: Optional[Settings] = None,
    mailer: Optional[Mailer] = None,
    store: Optional[BookingStore] = None,
) -> FastAPI:
    """
    Builds the application with its own booking store and mailer.
    Tests pass a fake `mailer` to avoid real SMTP traffic.
    """
    settings = settings or get_settings()

    app = FastAPI(title=settings.PROJECT_NAME, version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.booking_service = BookingService(
        mailer=mailer or NotificationGateway(settings),
        store=store,
    )

    cors_headers = {
        "Access-Control-Allow-Origin": settings.CORS_ORIGIN or "*",
        "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type,Authorization",
    }

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)
        response.headers.update(cors_headers)
        return response

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"message": exc.message})

    # Global Exception Handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"🔥 UNHANDLED ERROR: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "Internal Server Error", "detail": "An unexpected error occurred."},
            # Served outside the http middleware, so CORS headers are added here
            headers=cors_headers,
        )

    app.include_router(status.router, tags=["Status"])
    app.include_router(bookings.router, tags=["Bookings"])

    return app


def write_sentinel_files(port: int, directory: str = ".") -> None:
    """Port and pid files let start/stop scripts find the running server."""
    base = Path(directory)
    base.mkdir(parents=True, exist_ok=True)
    (base / PORT_FILE).write_text(str(port), encoding="utf-8")
    (base / PID_FILE).write_text(str(os.getpid()), encoding="utf-8")


def bind_socket(host: str, port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    return sock


def serve(app: FastAPI, settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()

    try:
        sock = bind_socket(settings.HOST, settings.PORT)
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            logger.critical(
                f"❌ Port {settings.PORT} is already in use. Stop the other server or free port {settings.PORT}, then restart."
            )
        else:
            logger.critical(f"❌ Server failed to start: {e}")
        sys.exit(1)

    actual_port = sock.getsockname()[1]
    write_sentinel_files(actual_port, settings.SENTINEL_DIR)
    logger.info(f"🌐 Listening on http://{settings.HOST}:{actual_port}")

    server = uvicorn.Server(uvicorn.Config(app, log_config=None))
    server.run(sockets=[sock])


app = create_app()

if __name__ == "__main__":
    serve(app)
