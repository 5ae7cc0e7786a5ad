"""Verify the SMTP credentials used for booking notifications.

Usage:
    python -m backend.check_mail
"""
import sys

from backend.core.config import load_mail_settings
from backend.notifications.mailer import APP_PASSWORD_HINT, NotificationFailure, SmtpMailer


def main() -> None:
    settings = load_mail_settings()
    if not settings.is_configured:
        print("Email credentials not configured. Set EMAIL_USER and EMAIL_PASS.", file=sys.stderr)
        sys.exit(1)

    try:
        SmtpMailer(settings).verify()
    except NotificationFailure as exc:
        print(f"Email configuration error: {exc}", file=sys.stderr)
        if exc.is_auth_error:
            print(APP_PASSWORD_HINT, file=sys.stderr)
        sys.exit(1)

    print(f"SMTP login to {settings.host}:{settings.port} as {settings.user} succeeded.")
    print(f"Admin notifications go to {settings.admin_recipient}.")


if __name__ == "__main__":
    main()
