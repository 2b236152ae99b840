"""
Maps SMTP failures to a small set of user facing error codes.

Rules are checked in order and the first match wins. The matching is heuristic:
it looks at the lowercased server response (or exception text) and the numeric
SMTP reply code. Provider wording varies, so anything unrecognised ends up as
SMTP_SEND_FAILED.
"""
import smtplib
from typing import Callable, List, NamedTuple, Optional

from app.core.errors import ConfigurationError, NotificationError, NotificationErrorCode


def error_text(exc: BaseException) -> str:
    """Best available server response for an exception."""
    if isinstance(exc, smtplib.SMTPRecipientsRefused):
        parts = [_decode(reply) for _code, reply in exc.recipients.values()]
        return " ".join(parts) or str(exc)
    if isinstance(exc, smtplib.SMTPResponseException):
        return _decode(exc.smtp_error) or str(exc)
    return str(exc) or exc.__class__.__name__


def response_code(exc: BaseException) -> Optional[int]:
    if isinstance(exc, smtplib.SMTPRecipientsRefused):
        codes = [code for code, _reply in exc.recipients.values()]
        return codes[0] if codes else None
    if isinstance(exc, smtplib.SMTPResponseException):
        return exc.smtp_code
    return getattr(exc, "smtp_code", None)


def first_line(text: str) -> str:
    lines = text.strip().splitlines()
    return lines[0].strip() if lines else ""


def _decode(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value) if value is not None else ""


class SmtpFailure(NamedTuple):
    exc: BaseException
    text: str
    code: Optional[int]


class ErrorRule(NamedTuple):
    code: NotificationErrorCode
    matches: Callable[[SmtpFailure], bool]
    message: Optional[str]  # None passes the exception's own message through


def _auth_failed(failure: SmtpFailure) -> bool:
    return (
        isinstance(failure.exc, smtplib.SMTPAuthenticationError)
        or failure.code in (534, 535)
        or "authentication failed" in failure.text
        or "username and password not accepted" in failure.text
    )


def _relay_denied(failure: SmtpFailure) -> bool:
    return "relay" in failure.text and "denied" in failure.text


def _unverified_sender(failure: SmtpFailure) -> bool:
    return any(
        phrase in failure.text
        for phrase in ("sender address rejected", "unverified sender", "sender not verified")
    )


def _config_error(failure: SmtpFailure) -> bool:
    return isinstance(failure.exc, ConfigurationError)


ERROR_RULES: List[ErrorRule] = [
    ErrorRule(
        NotificationErrorCode.AUTH_FAILED,
        _auth_failed,
        "SMTP authentication failed. Check Brevo SMTP username/password and account status.",
    ),
    ErrorRule(
        NotificationErrorCode.RELAY_DENIED,
        _relay_denied,
        "SMTP relay denied. Verify Brevo sender/domain permissions and recipient policy.",
    ),
    ErrorRule(
        NotificationErrorCode.UNVERIFIED_SENDER,
        _unverified_sender,
        "Sender is not verified in Brevo. Verify SMTP_FROM before sending booking emails.",
    ),
    ErrorRule(NotificationErrorCode.CONFIG_ERROR, _config_error, None),
]

SEND_FAILED_MESSAGE = "Failed to send confirmation email through SMTP."


def classify_smtp_error(exc: BaseException) -> NotificationError:
    """
    Turn any exception raised while sending into a NotificationError.
    Already classified errors are returned unchanged.
    """
    if isinstance(exc, NotificationError):
        return exc

    failure = SmtpFailure(exc=exc, text=error_text(exc).lower(), code=response_code(exc))
    for rule in ERROR_RULES:
        if rule.matches(failure):
            message = rule.message if rule.message is not None else str(exc)
            return NotificationError(rule.code, message)

    return NotificationError(NotificationErrorCode.SEND_FAILED, SEND_FAILED_MESSAGE)
