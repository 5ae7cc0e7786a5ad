import logging
from collections.abc import Callable
from email.message import EmailMessage
from typing import Protocol

from backend.core.config import MailSettings, load_mail_settings
from backend.models.appointment import Appointment
from backend.notifications.mailer import APP_PASSWORD_HINT, NotificationFailure, SmtpMailer
from backend.notifications.templates import build_admin_message, build_patient_message


logger = logging.getLogger(__name__)


class Mailer(Protocol):
    def verify(self) -> None: ...

    def send(self, message: EmailMessage) -> None: ...


class NotificationDispatcher:
    """Best-effort booking emails for the administrator and the patient.

    Mail settings are fetched from ``settings_provider`` on every dispatch.
    Every failure, from reading settings to delivery, is logged and never
    reaches the caller.
    """

    def __init__(
        self,
        settings_provider: Callable[[], MailSettings] = load_mail_settings,
        mailer_factory: Callable[[MailSettings], Mailer] = SmtpMailer,
    ) -> None:
        self.settings_provider = settings_provider
        self.mailer_factory = mailer_factory

    def dispatch(self, appointment: Appointment) -> None:
        settings = self._load_settings()
        if settings is None:
            return

        logger.info(
            'Using email config - From: %s | Admin To: %s',
            settings.user,
            settings.admin_recipient,
        )

        if not settings.is_configured:
            logger.warning(
                'Email credentials not configured. Set EMAIL_USER and EMAIL_PASS to enable email notifications.'
            )
            return

        mailer = None
        try:
            mailer = self.mailer_factory(settings)
            mailer.verify()
        except NotificationFailure as exc:
            self._log_failure('Email configuration error', exc)
        except Exception:
            logger.exception('Could not prepare the mail transport for appointment %s', appointment.id)
            return
        else:
            logger.info('Email server is ready to send messages')

        self.notify_admin(appointment, settings=settings, mailer=mailer)

        if appointment.patient_email:
            self.notify_patient(appointment, settings=settings, mailer=mailer)
        else:
            logger.info('No patient email provided, skipping patient confirmation email')

    def notify_admin(
        self,
        appointment: Appointment,
        settings: MailSettings | None = None,
        mailer: Mailer | None = None,
    ) -> None:
        settings = settings or self._load_settings()
        if settings is None:
            return
        if not settings.is_configured:
            logger.warning('Email credentials not configured, admin notification skipped')
            return

        self._deliver(build_admin_message, appointment, settings, mailer, 'admin email notification')

    def notify_patient(
        self,
        appointment: Appointment,
        settings: MailSettings | None = None,
        mailer: Mailer | None = None,
    ) -> None:
        if not appointment.patient_email:
            return

        settings = settings or self._load_settings()
        if settings is None:
            return
        if not settings.is_configured:
            logger.warning('Email credentials not configured, patient confirmation skipped')
            return

        self._deliver(build_patient_message, appointment, settings, mailer, 'patient confirmation email')

    def _load_settings(self) -> MailSettings | None:
        try:
            return self.settings_provider()
        except Exception:
            logger.exception('Could not load mail settings, notifications skipped')
            return None

    def _deliver(
        self,
        build: Callable[[Appointment, MailSettings], EmailMessage],
        appointment: Appointment,
        settings: MailSettings,
        mailer: Mailer | None,
        description: str,
    ) -> None:
        try:
            message = build(appointment, settings)
            (mailer or self.mailer_factory(settings)).send(message)
        except NotificationFailure as exc:
            self._log_failure(f'Failed to send {description}', exc)
            return
        except Exception:
            logger.exception('Failed to send %s for appointment %s', description, appointment.id)
            return

        logger.info('%s sent successfully to %s', description.capitalize(), message['To'])

    @staticmethod
    def _log_failure(context: str, exc: NotificationFailure) -> None:
        logger.error('%s: %s', context, exc)
        if exc.is_auth_error:
            logger.error(APP_PASSWORD_HINT)
