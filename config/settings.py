from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from assistant.errors import ConfigurationError


load_dotenv()


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here.
    """

    def __init__(self) -> None:
        self.app_env: str = os.getenv("APP_ENV", "development")
        self.chat_port: int = int(os.getenv("CHAT_PORT", "3001"))
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

        self.openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY") or None
        self.openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
        self.chat_model: str = os.getenv("CHAT_MODEL", "gpt-5-mini")
        self.assist_model: str = os.getenv("ASSIST_MODEL", "gpt-4o-mini")
        self.chat_max_tokens: int = int(os.getenv("CHAT_MAX_TOKENS", "512"))
        self.temperature: float = float(os.getenv("MODEL_TEMPERATURE", "1"))
        self.history_limit: int = int(os.getenv("HISTORY_LIMIT", "20"))
        self.subject_max_tokens: int = int(os.getenv("SUBJECT_MAX_TOKENS", "30"))
        self.review_max_tokens: int = int(os.getenv("REVIEW_MAX_TOKENS", "150"))
        self.upstream_timeout: float = float(os.getenv("UPSTREAM_TIMEOUT", "60"))

        self.studio_profile_path: Optional[str] = os.getenv("STUDIO_PROFILE_PATH") or None
        self.redaction_rules_path: Optional[str] = os.getenv("REDACTION_RULES_PATH") or None

        self.mail_api_url: str = os.getenv("MAIL_API_URL", "https://api.resend.com/emails")
        self.mail_api_key: Optional[str] = os.getenv("MAIL_API_KEY") or None
        self.mail_from: str = os.getenv("MAIL_FROM", "Luminary Ventures <noreply@luminaryventures.com>")
        self.contact_recipient: str = os.getenv("CONTACT_RECIPIENT", "hello@luminaryventures.com")

    @property
    def is_dev(self) -> bool:
        return self.app_env.lower() in {"dev", "development", "local"}

    def require_credentials(self) -> None:
        if not self.openai_api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY not set. Please configure it in environment or .env"
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
