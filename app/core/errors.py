"""
Exception types raised by the booking and notification services.
"""
from enum import Enum


class NotificationErrorCode(str, Enum):
    AUTH_FAILED = "SMTP_AUTH_FAILED"
    RELAY_DENIED = "SMTP_RELAY_DENIED"
    UNVERIFIED_SENDER = "SMTP_UNVERIFIED_SENDER"
    CONFIG_ERROR = "SMTP_CONFIG_ERROR"
    SEND_FAILED = "SMTP_SEND_FAILED"


class ValidationError(Exception):
    """Raised when a booking submission is missing required fields."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(Exception):
    """Raised before sending when SMTP credentials or sender are missing."""

    code = NotificationErrorCode.CONFIG_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotificationError(Exception):
    """Classified confirmation email failure, safe to show to API callers."""

    def __init__(self, code: NotificationErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"NotificationError({self.code.value}, {self.message!r})"
