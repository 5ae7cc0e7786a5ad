import smtplib
import ssl
from email.message import EmailMessage

from backend.core.config import MailSettings


APP_PASSWORD_HINT = (
    'Gmail rejected the login. Use an App Password instead of the account password: '
    'generate one at https://myaccount.google.com/apppasswords, set it as EMAIL_PASS, '
    'and make sure EMAIL_USER is the full Gmail address.'
)


class NotificationFailure(Exception):
    """The mail transport could not deliver or authenticate."""

    def __init__(self, message: str, is_auth_error: bool = False) -> None:
        super().__init__(message)
        self.is_auth_error = is_auth_error


class SmtpMailer:
    def __init__(self, settings: MailSettings) -> None:
        self.settings = settings

    def _connect(self) -> smtplib.SMTP:
        settings = self.settings
        context = ssl.create_default_context()

        if settings.use_ssl:
            connection = smtplib.SMTP_SSL(
                settings.host,
                settings.port,
                timeout=settings.timeout_seconds,
                context=context,
            )
        else:
            connection = smtplib.SMTP(settings.host, settings.port, timeout=settings.timeout_seconds)

        try:
            if not settings.use_ssl:
                connection.starttls(context=context)
            connection.login(settings.user, settings.password)
        except Exception:
            connection.close()
            raise

        return connection

    def verify(self) -> None:
        try:
            with self._connect() as connection:
                connection.noop()
        except smtplib.SMTPAuthenticationError as exc:
            raise NotificationFailure(f'SMTP authentication failed: {exc}', is_auth_error=True) from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationFailure(f'SMTP server unreachable: {exc}') from exc

    def send(self, message: EmailMessage) -> None:
        try:
            with self._connect() as connection:
                connection.send_message(message)
        except smtplib.SMTPAuthenticationError as exc:
            raise NotificationFailure(f'SMTP authentication failed: {exc}', is_auth_error=True) from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationFailure(f'Could not send email to {message["To"]}: {exc}') from exc
