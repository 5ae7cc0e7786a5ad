import os
from dataclasses import dataclass

from dotenv import dotenv_values, load_dotenv


load_dotenv()

ENV_FILE = os.getenv("ENV_FILE", ".env")


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS", "*"))

# Hosted deployments (Vercel) mount the project read-only.
READ_ONLY_FILESYSTEM = _get_bool(os.getenv("READ_ONLY_FILESYSTEM")) or os.getenv("VERCEL") == "1"
APPOINTMENTS_FILE = os.getenv("APPOINTMENTS_FILE", "appointments.json")

MAIL_SERVICE_PRESETS = {
    "gmail": ("smtp.gmail.com", 465),
    "outlook": ("smtp.office365.com", 587),
    "hotmail": ("smtp.office365.com", 587),
    "yahoo": ("smtp.mail.yahoo.com", 465),
}
DEFAULT_MAIL_SERVICE = "gmail"
DEFAULT_MAIL_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class MailSettings:
    """SMTP credentials and recipients for booking notifications."""

    user: str | None = None
    password: str | None = None
    admin_recipient: str | None = None
    service: str = DEFAULT_MAIL_SERVICE
    host: str = MAIL_SERVICE_PRESETS[DEFAULT_MAIL_SERVICE][0]
    port: int = MAIL_SERVICE_PRESETS[DEFAULT_MAIL_SERVICE][1]
    timeout_seconds: float = DEFAULT_MAIL_TIMEOUT_SECONDS
    contact_number: str | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.user and self.password)

    @property
    def use_ssl(self) -> bool:
        return self.port == 465


def load_mail_settings(env_file: str | os.PathLike | None = None) -> MailSettings:
    """Read mail settings fresh from the env file and the process environment.

    Called on every notification so credential changes in ``.env`` apply
    without a restart. Values in the file win over the process environment.
    """
    file_values = dotenv_values(env_file or ENV_FILE)

    def lookup(name: str) -> str | None:
        value = file_values.get(name)
        if value is None:
            value = os.environ.get(name)
        if value is None or not value.strip():
            return None
        return value.strip()

    service = (lookup("EMAIL_SERVICE") or DEFAULT_MAIL_SERVICE).lower()
    preset_host, preset_port = MAIL_SERVICE_PRESETS.get(service, MAIL_SERVICE_PRESETS[DEFAULT_MAIL_SERVICE])
    user = lookup("EMAIL_USER")

    return MailSettings(
        user=user,
        password=lookup("EMAIL_PASS"),
        admin_recipient=lookup("EMAIL_TO") or user,
        service=service,
        host=lookup("EMAIL_HOST") or preset_host,
        port=int(lookup("EMAIL_PORT") or preset_port),
        timeout_seconds=float(lookup("EMAIL_TIMEOUT_SECONDS") or DEFAULT_MAIL_TIMEOUT_SECONDS),
        contact_number=lookup("CLINIC_CONTACT_NUMBER"),
    )
