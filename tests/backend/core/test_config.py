from pathlib import Path

import pytest

from backend.core.config import MailSettings, _get_bool, load_mail_settings


MAIL_VARIABLES = (
    'EMAIL_USER',
    'EMAIL_PASS',
    'EMAIL_TO',
    'EMAIL_SERVICE',
    'EMAIL_HOST',
    'EMAIL_PORT',
    'EMAIL_TIMEOUT_SECONDS',
    'CLINIC_CONTACT_NUMBER',
)


@pytest.fixture(autouse=True)
def clean_mail_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in MAIL_VARIABLES:
        monkeypatch.delenv(name, raising=False)


@pytest.mark.parametrize(
    ('value', 'expected'),
    [('1', True), (' TRUE ', True), ('on', True), ('0', False), ('no', False), (None, False)],
)
def test_get_bool(value: str | None, expected: bool) -> None:
    assert _get_bool(value) is expected


def test_load_mail_settings_defaults_when_nothing_configured(tmp_path: Path) -> None:
    settings = load_mail_settings(tmp_path / 'missing.env')

    assert settings == MailSettings()
    assert not settings.is_configured


def test_load_mail_settings_reads_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv('EMAIL_USER', 'clinic@example.com')
    monkeypatch.setenv('EMAIL_PASS', 'app-password')

    settings = load_mail_settings(tmp_path / 'missing.env')

    assert settings.is_configured
    assert settings.admin_recipient == 'clinic@example.com'
    assert (settings.host, settings.port) == ('smtp.gmail.com', 465)
    assert settings.use_ssl


def test_load_mail_settings_rereads_env_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / '.env'
    monkeypatch.setenv('EMAIL_USER', 'old@example.com')
    env_file.write_text('EMAIL_PASS=first\n')

    assert load_mail_settings(env_file).password == 'first'

    env_file.write_text('EMAIL_USER=new@example.com\nEMAIL_PASS=second\nEMAIL_TO=doctor@example.com\n')
    settings = load_mail_settings(env_file)

    assert settings.user == 'new@example.com'
    assert settings.password == 'second'
    assert settings.admin_recipient == 'doctor@example.com'


def test_load_mail_settings_service_presets_and_overrides(tmp_path: Path) -> None:
    env_file = tmp_path / '.env'
    env_file.write_text('EMAIL_SERVICE=Outlook\nEMAIL_TIMEOUT_SECONDS=2.5\n')

    settings = load_mail_settings(env_file)
    assert (settings.host, settings.port) == ('smtp.office365.com', 587)
    assert not settings.use_ssl
    assert settings.timeout_seconds == 2.5

    env_file.write_text('EMAIL_HOST=mail.example.com\nEMAIL_PORT=2525\n')
    settings = load_mail_settings(env_file)
    assert (settings.host, settings.port) == ('mail.example.com', 2525)
