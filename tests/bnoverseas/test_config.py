import pytest

from bnoverseas.core import config


def test_validate_runtime_config_accepts_configured_secrets() -> None:
    config.validate_runtime_config()


@pytest.mark.parametrize('name', ['JWT_SECRET', 'JWT_REFRESH_SECRET', 'SESSION_SECRET'])
def test_validate_runtime_config_requires_every_secret(monkeypatch, name: str) -> None:
    monkeypatch.setattr(config, name, 'x' * (config.MIN_SECRET_LENGTH - 1))

    with pytest.raises(config.ConfigurationError, match=name):
        config.validate_runtime_config()


def test_email_configured_needs_credentials_and_flag(monkeypatch) -> None:
    monkeypatch.setattr(config, 'SMTP_HOST', 'smtp.bnoverseas.com')
    monkeypatch.setattr(config, 'SMTP_USERNAME', 'mailer@bnoverseas.com')
    monkeypatch.setattr(config, 'SMTP_PASSWORD', 'app-password')
    monkeypatch.setattr(config, 'EMAIL_NOTIFICATIONS_ENABLED', False)
    assert config.email_configured() is False

    monkeypatch.setattr(config, 'EMAIL_NOTIFICATIONS_ENABLED', True)
    assert config.email_configured() is True


@pytest.mark.parametrize(
    ('raw', 'default', 'expected'),
    [(None, True, True), ('yes', False, True), ('0', True, False), (' TRUE ', False, True)],
)
def test_get_bool(raw, default, expected) -> None:
    assert config._get_bool(raw, default=default) is expected


def test_get_list_splits_and_trims() -> None:
    assert config._get_list(' http://a.com , ,http://b.com', []) == ['http://a.com', 'http://b.com']
    assert config._get_list('', ['fallback']) == ['fallback']
