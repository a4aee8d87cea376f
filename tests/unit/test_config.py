"""Test settings loading."""
import pytest
from drs_care.config import DEFAULT_AVAILABLE_DATE, load_settings


def test_defaults(monkeypatch):
    for key in ("DEFAULT_AVAILABLE_DATE", "PORT", "ACCESS_TOKEN_TTL_SECONDS", "CORS_ORIGINS"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ACCESS_TOKEN_SECRET", "s3cret")

    settings = load_settings()

    assert settings.default_available_date == DEFAULT_AVAILABLE_DATE == "Dec 17, 2022"
    assert settings.access_token_ttl_seconds == 3600
    assert settings.port == 5000
    assert settings.cors_origins == ["*"]
    assert settings.access_token_secret == "s3cret"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ACCESS_TOKEN_SECRET", "s3cret")
    monkeypatch.setenv("SENDER_EMAIL", "clinic@x.com")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, https://drscare.app")

    settings = load_settings()

    assert settings.sender_email == "clinic@x.com"
    assert settings.port == 8080
    assert settings.cors_origins == ["http://localhost:3000", "https://drscare.app"]


def test_missing_secret_warns(monkeypatch):
    monkeypatch.delenv("ACCESS_TOKEN_SECRET", raising=False)

    with pytest.warns(RuntimeWarning):
        settings = load_settings()

    assert settings.access_token_secret
