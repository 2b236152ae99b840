import sys

from app.core.config import get_settings
from app.core.logger import setup_logging
from app.services.notification_service import SmtpTransport
from app.services.smtp_errors import classify_smtp_error, error_text, first_line, response_code

VERIFY_TIMEOUT = 12


def verify_smtp() -> int:
    """
    Connects and logs in to the configured SMTP relay without sending mail.
    Returns the process exit code.
    """
    settings = get_settings()

    if not settings.SMTP_USER or not settings.SMTP_PASS or not settings.SMTP_HOST:
        print("SMTP config missing. Set JAVA_SMTP_* or SMTP_* values in .env before verifying.", file=sys.stderr)
        return 1

    transport = SmtpTransport.from_settings(settings)
    transport.timeout = VERIFY_TIMEOUT
    target = f"{settings.SMTP_HOST}:{settings.SMTP_PORT}"

    try:
        transport.verify()
    except Exception as e:
        failure = classify_smtp_error(e)
        code = response_code(e)
        print(f"SMTP verify FAILED: {target}", file=sys.stderr)
        print(f"code={failure.code.value} responseCode={code if code is not None else 'NA'}", file=sys.stderr)
        print(f"message={first_line(error_text(e))}", file=sys.stderr)
        print("Tip: For Gmail use a Google App Password. For Brevo use SMTP login + SMTP key.", file=sys.stderr)
        return 1

    print(f"SMTP verify OK: {target}")
    return 0


if __name__ == "__main__":
    setup_logging("WARNING", "")
    sys.exit(verify_smtp())
