"""Application configuration via pydantic-settings.

Loads all settings from ``TAILFORWARD_``-prefixed environment variables
(or a .env file).  Secrets are read once at startup by ``load_secrets``
and passed explicitly to the webhook pipeline; nothing re-reads them per
request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from tailforward.core.exceptions import ConfigurationError
from tailforward.core.telegram_client import TELEGRAM_API_BASE

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Central configuration for the Tailforward application."""

    model_config = SettingsConfigDict(
        env_prefix="tailforward_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Tailscale ---
    tailscale_secret_file: Path = Path("/secrets/tailscale-webhook")
    tailscale_secret: SecretStr | None = None

    # --- Telegram ---
    telegram_secret_file: Path = Path("/secrets/telegram")
    telegram_secret: SecretStr | None = None
    chat_id: int
    telegram_api_base: str = TELEGRAM_API_BASE
    telegram_timeout_seconds: float = 10.0

    # --- Application ---
    debug: bool = False
    log_level: str = "INFO"

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level.upper()


@dataclass(frozen=True)
class Secrets:
    """The two secrets the pipeline needs, loaded once."""

    webhook_secret: SecretStr
    bot_token: SecretStr


def _read_secret_file(path: Path, *, key_value: bool = False) -> SecretStr:
    """Read a secret from ``path``.

    With ``key_value``, the file may hold a ``NAME=<secret>`` line and
    only the part after the first ``=`` is used.
    """
    try:
        raw = path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigurationError(f"Cannot read secret file {path}: {exc.strerror}") from exc

    if key_value and "=" in raw:
        raw = raw.partition("=")[2].strip()
    if not raw:
        raise ConfigurationError(f"Secret file {path} is empty")

    logger.info("Read secret from path", extra={"path": str(path)})
    return SecretStr(raw)


def load_secrets(settings: Settings) -> Secrets:
    """Load the webhook secret and bot token.

    Direct values (``TAILFORWARD_TAILSCALE_SECRET``/``TAILFORWARD_TELEGRAM_SECRET``)
    take precedence over the secret files.

    Raises:
        ConfigurationError: If a secret is missing, unreadable, or empty.
    """
    webhook_secret = settings.tailscale_secret
    if webhook_secret is None or not webhook_secret.get_secret_value():
        webhook_secret = _read_secret_file(settings.tailscale_secret_file)

    bot_token = settings.telegram_secret
    if bot_token is None or not bot_token.get_secret_value():
        bot_token = _read_secret_file(settings.telegram_secret_file, key_value=True)

    return Secrets(webhook_secret=webhook_secret, bot_token=bot_token)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached application settings singleton."""
    return Settings()
