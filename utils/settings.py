"""Application settings read from the environment."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

DEFAULT_IDENTITY_BASE_URL = "https://identitytoolkit.googleapis.com/v1"


@dataclass
class AppSettings:
    """Runtime configuration for the drive service."""

    openai_model: str
    identity_api_key: str
    identity_base_url: str
    storage_key_prefix: str
    log_level: str


def load_settings() -> AppSettings:
    """Build settings from environment variables, applying defaults."""
    return AppSettings(
        openai_model=os.getenv("OPENAI_MODEL", "gpt-5"),
        identity_api_key=os.getenv("IDENTITY_API_KEY", ""),
        identity_base_url=os.getenv("IDENTITY_BASE_URL", DEFAULT_IDENTITY_BASE_URL).rstrip("/"),
        storage_key_prefix=os.getenv("STORAGE_KEY_PREFIX", "drive-files-"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
