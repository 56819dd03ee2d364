"""
Runtime configuration for the relay.

Values come from the process environment; a ``.env`` file in the repository
root is loaded on start-up when present. Settings are read once and cached,
call ``get_settings.cache_clear()`` after changing the environment.
"""
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .logging import get_logger

logger = get_logger(__name__)

ENV_PATH = Path(__file__).resolve().parents[3] / ".env"

DEFAULT_ALIEXPRESS_BASE_URL = "https://api-sg.aliexpress.com/sync"


def load_environment(env_path: Path = ENV_PATH) -> bool:
    """Load the ``.env`` file into the process environment if it exists."""
    if env_path.exists():
        load_dotenv(env_path)
        logger.info("env_loaded", env_path=str(env_path))
        return True
    logger.info("env_file_not_found", expected_path=str(env_path))
    return False


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    return value if value not in (None, "") else default


def _env_list(name: str, default: str) -> List[str]:
    raw = _env(name, default) or ""
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    """Relay settings, populated from the environment at instantiation."""

    aliexpress_app_key: Optional[str] = Field(default_factory=lambda: _env("ALIEXPRESS_APP_KEY"))
    aliexpress_app_secret: Optional[str] = Field(default_factory=lambda: _env("ALIEXPRESS_APP_SECRET"))
    aliexpress_base_url: str = Field(
        default_factory=lambda: _env("ALIEXPRESS_BASE_URL", DEFAULT_ALIEXPRESS_BASE_URL)
    )
    aliexpress_timeout_seconds: float = Field(
        default_factory=lambda: float(_env("ALIEXPRESS_TIMEOUT_SECONDS", "10.0"))
    )
    ship_to_country: str = Field(default_factory=lambda: _env("SHIP_TO_COUNTRY", "US"))
    target_currency: str = Field(default_factory=lambda: _env("TARGET_CURRENCY", "USD"))
    target_language: str = Field(default_factory=lambda: _env("TARGET_LANGUAGE", "EN"))

    stripe_secret_key: Optional[str] = Field(default_factory=lambda: _env("STRIPE_SECRET_KEY"))
    public_base_url: str = Field(default_factory=lambda: _env("PUBLIC_BASE_URL", "http://localhost:4000"))
    port: int = Field(default_factory=lambda: int(_env("PORT", "4000")))

    price_markup: float = Field(default_factory=lambda: float(_env("PRICE_MARKUP", "1.5")), gt=0)
    wallet_discount_rate: float = Field(
        default_factory=lambda: float(_env("WALLET_DISCOUNT_RATE", "0.10")), ge=0, lt=1
    )
    excluded_first_level_categories: List[str] = Field(
        default_factory=lambda: _env_list("EXCLUDED_FIRST_LEVEL_CATEGORIES", "Shoes,Clothing")
    )
    excluded_second_level_categories: List[str] = Field(
        default_factory=lambda: _env_list("EXCLUDED_SECOND_LEVEL_CATEGORIES", "Clothing")
    )

    log_level: str = Field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))
    log_json: bool = Field(default_factory=lambda: _env("LOG_JSON", "true").lower() == "true")
    cors_allow_origins: List[str] = Field(default_factory=lambda: _env_list("CORS_ALLOW_ORIGINS", "*"))

    @property
    def success_url(self) -> str:
        return f"{self.public_base_url.rstrip('/')}/success.html"

    @property
    def cancel_url(self) -> str:
        return f"{self.public_base_url.rstrip('/')}/cancel.html"

    def credential_status(self) -> dict:
        """Report which credentials are present without exposing them."""
        return {
            "ALIEXPRESS_APP_KEY": "OK" if self.aliexpress_app_key else "MISSING",
            "ALIEXPRESS_APP_SECRET": "OK" if self.aliexpress_app_secret else "MISSING",
            "STRIPE_SECRET_KEY": "OK" if self.stripe_secret_key else "MISSING",
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()
