import smtplib
from email.message import EmailMessage
from email.utils import formatdate, make_msgid, parseaddr
from typing import Callable, Optional, Protocol, Tuple

from fastapi.concurrency import run_in_threadpool

from app.core.config import Settings, get_settings
from app.core.errors import ConfigurationError
from app.core.logger import logger
from app.models.booking import Booking
from app.services.smtp_errors import classify_smtp_error, error_text, first_line


class Mailer(Protocol):
    """Anything that can deliver a booking confirmation and return its message id."""

    async def send_booking_confirmation(self, booking: Booking) -> str: ...


def render_confirmation(booking: Booking) -> Tuple[str, str]:
    """
    Builds the subject and plain text body of the confirmation email.
    Returns: (subject, body)
    """
    subject = f"Booking Confirmed: {booking.service_type}"
    lines = [
        f"Hi {booking.customer_name},",
        "",
        "Your garage service booking is confirmed.",
        f"Booking ID: {booking.id}",
        f"Service: {booking.service_type}",
        f"Appointment: {booking.appointment_date}",
        f"Notes: {booking.notes}" if booking.notes else "",
        "",
        "Thank you.",
    ]
    # Empty entries are dropped, so the notes line disappears without leaving a gap
    body = "\n".join(line for line in lines if line)
    return subject, body


class SmtpTransport:
    """
    Connection settings for one SMTP relay.
    Each send opens a connection, upgrades it (implicit TLS or STARTTLS) and logs in.
    """

    def __init__(self, host: str, port: int, user: str, password: str, use_ssl: bool, timeout: float):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_ssl = use_ssl
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpTransport":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASS,
            use_ssl=settings.smtp_use_ssl,
            timeout=settings.SMTP_TIMEOUT,
        )

    def _open(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        return smtplib.SMTP(self.host, self.port, timeout=self.timeout)

    def _handshake(self, server: smtplib.SMTP) -> None:
        if not self.use_ssl:
            server.starttls()
        server.login(self.user, self.password)

    def send(self, message: EmailMessage) -> None:
        with self._open() as server:
            self._handshake(server)
            server.send_message(message)

    def verify(self) -> None:
        """Connect and authenticate without sending anything."""
        with self._open() as server:
            self._handshake(server)


class NotificationGateway:
    """
    Sends booking confirmation emails over SMTP.

    The transport is created on first use and then shared by every request.
    Missing credentials fail each attempt with ConfigurationError and nothing
    is cached, so fixing the environment and restarting is enough.
    Every failure leaves this class as a classified NotificationError.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport_factory: Callable[[Settings], SmtpTransport] = SmtpTransport.from_settings,
    ):
        self.settings = settings or get_settings()
        self._transport_factory = transport_factory
        self._transport: Optional[SmtpTransport] = None

    def get_transport(self) -> SmtpTransport:
        if self._transport is not None:
            return self._transport

        missing = self.settings.missing_smtp_settings()
        if missing:
            raise ConfigurationError(
                f"Missing required SMTP configuration: {', '.join(missing)}. "
                "Set SMTP_USER/SMTP_PASS/SMTP_FROM or JAVA_SMTP_USER/JAVA_SMTP_PASS/JAVA_SMTP_FROM."
            )

        self._transport = self._transport_factory(self.settings)
        logger.info(f"📮 SMTP transport ready: {self.settings.SMTP_HOST}:{self.settings.SMTP_PORT}")
        return self._transport

    def build_message(self, booking: Booking) -> EmailMessage:
        subject, body = render_confirmation(booking)
        _name, sender = parseaddr(self.settings.SMTP_FROM)
        domain = sender.rpartition("@")[2] if "@" in sender else None

        msg = EmailMessage()
        msg["From"] = self.settings.SMTP_FROM
        msg["To"] = booking.customer_email
        msg["Subject"] = subject
        msg["Date"] = formatdate(localtime=True)
        msg["Message-ID"] = make_msgid(domain=domain)
        msg.set_content(body)
        return msg

    async def send_booking_confirmation(self, booking: Booking) -> str:
        """
        Sends the confirmation for `booking` to its customer.
        Returns: the Message-ID of the sent email.
        Raises: NotificationError
        """
        try:
            transport = self.get_transport()
            message = self.build_message(booking)
            # smtplib blocks, keep the event loop free for other requests
            await run_in_threadpool(transport.send, message)
        except Exception as exc:
            failure = classify_smtp_error(exc)
            logger.error(
                f"❌ Confirmation email for booking {booking.id} failed "
                f"[{failure.code.value}]: {first_line(error_text(exc))}"
            )
            raise failure from exc

        logger.info(f"✅ Confirmation email sent to {booking.customer_email} (booking {booking.id})")
        return message["Message-ID"]
