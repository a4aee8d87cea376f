"""Configuration for the Drs Care booking backend.

Values come from the environment (a local .env file is loaded first).
"""
import os
import warnings
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()

# Used by /available when the caller does not pass ?date=
DEFAULT_AVAILABLE_DATE = "Dec 17, 2022"

# Token validity window (1 hour)
ACCESS_TOKEN_TTL_SECONDS = 3600

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"

CLINIC_ADDRESS = "andor killa bandorban"

_DEV_TOKEN_SECRET = "INSECURE-DEV-SECRET-CHANGE-IN-PRODUCTION"  # noqa: S105


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the API server."""
    database_url: str = "sqlite:///drs_care.db"
    access_token_secret: str = _DEV_TOKEN_SECRET
    access_token_ttl_seconds: int = ACCESS_TOKEN_TTL_SECONDS
    email_sender_key: str = ""
    sender_email: str = ""
    sendgrid_api_url: str = SENDGRID_API_URL
    default_available_date: str = DEFAULT_AVAILABLE_DATE
    clinic_address: str = CLINIC_ADDRESS
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


def load_settings() -> Settings:
    """
    Build Settings from environment variables.

    Returns:
        Settings instance

    Raises:
        ValueError: If a numeric variable is not an integer
    """
    secret = os.getenv("ACCESS_TOKEN_SECRET")
    if not secret:
        warnings.warn(
            "ACCESS_TOKEN_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION",
            RuntimeWarning,
            stacklevel=2,
        )
        secret = _DEV_TOKEN_SECRET

    origins = os.getenv("CORS_ORIGINS", "*")

    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///drs_care.db"),
        access_token_secret=secret,
        access_token_ttl_seconds=int(
            os.getenv("ACCESS_TOKEN_TTL_SECONDS", str(ACCESS_TOKEN_TTL_SECONDS))
        ),
        email_sender_key=os.getenv("EMAIL_SENDER_KEY", ""),
        sender_email=os.getenv("SENDER_EMAIL", ""),
        sendgrid_api_url=os.getenv("SENDGRID_API_URL", SENDGRID_API_URL),
        default_available_date=os.getenv("DEFAULT_AVAILABLE_DATE", DEFAULT_AVAILABLE_DATE),
        clinic_address=os.getenv("CLINIC_ADDRESS", CLINIC_ADDRESS),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
    )
