import pytest

from app.core.config import load_settings


def test_database_url_is_required(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(ValueError):
        load_settings()


def test_defaults(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///santa.db")
    for name in ("LOG_LEVEL", "APP_URL", "ALLOWED_EMAIL_DOMAIN", "DRAW_MAX_ATTEMPTS", "DRAW_MINIMIZE_RECIPROCALS"):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()
    assert settings.log_level == "INFO"
    assert settings.app_url == "http://localhost:3000"
    assert settings.allowed_email_domain is None
    assert settings.draw_max_attempts == 100
    assert settings.draw_minimize_reciprocals is True


def test_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///santa.db")
    monkeypatch.setenv("APP_URL", "https://santa.acme.com/")
    monkeypatch.setenv("ALLOWED_EMAIL_DOMAIN", "ACME.com")
    monkeypatch.setenv("DRAW_MAX_ATTEMPTS", "10")
    monkeypatch.setenv("DRAW_MINIMIZE_RECIPROCALS", "no")

    settings = load_settings()
    assert settings.app_url == "https://santa.acme.com"
    assert settings.allowed_email_domain == "acme.com"
    assert settings.draw_max_attempts == 10
    assert settings.draw_minimize_reciprocals is False


def test_invalid_attempts(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///santa.db")
    monkeypatch.setenv("DRAW_MAX_ATTEMPTS", "lots")
    with pytest.raises(ValueError):
        load_settings()


@pytest.mark.parametrize("value", ["0", "-3"])
def test_attempts_must_be_positive(monkeypatch, value):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///santa.db")
    monkeypatch.setenv("DRAW_MAX_ATTEMPTS", value)
    with pytest.raises(ValueError):
        load_settings()
