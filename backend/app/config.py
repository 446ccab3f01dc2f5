"""
Runtime configuration.

Values come from environment variables (a local .env file is loaded first).
They are read when Settings.from_env() is called rather than at import, so
tests can patch os.environ and the pipeline receives an explicit Settings
object instead of reaching for globals.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_TELEGRAM_API_BASE = "https://api.telegram.org"
DEFAULT_REQUEST_TIMEOUT = 10.0


class Settings(BaseModel):
    """Telegram delivery settings for one processing call."""

    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    telegram_api_base: str = DEFAULT_TELEGRAM_API_BASE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build Settings from the environment.

        TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID are required for delivery but
        are not validated here; the pipeline checks is_complete() so a missing
        value drops one message instead of failing app startup.
        """
        timeout_raw = os.getenv("TELEGRAM_TIMEOUT", "").strip()
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_REQUEST_TIMEOUT
        except ValueError:
            logger.warning(
                f"Ignoring unparseable TELEGRAM_TIMEOUT {timeout_raw!r}; "
                f"using {DEFAULT_REQUEST_TIMEOUT}s"
            )
            timeout = DEFAULT_REQUEST_TIMEOUT

        return cls(
            telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
            telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID") or None,
            telegram_api_base=(
                os.getenv("TELEGRAM_API_BASE", "").strip().rstrip("/")
                or DEFAULT_TELEGRAM_API_BASE
            ),
            request_timeout=timeout,
        )

    def is_complete(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


def get_settings() -> Settings:
    """FastAPI dependency returning settings resolved from the environment."""
    return Settings.from_env()
