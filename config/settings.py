"""Application settings and configuration management."""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/screening.db")

    MAX_FOLLOW_UPS: int = Field(default=2, ge=0)
    MIN_ANSWER_CHARS: int = Field(default=6, ge=1)

    DEFAULT_JOB_ID: Optional[str] = None
    SEED_DEMO_JOB: bool = True

    LLM_CONFIG_PATH: str = "app_config.json"
    LOCALES_PATH: Optional[str] = None

    OUTBOX: Literal["recording", "twilio"] = "recording"
    TWILIO_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_WHATSAPP_FROM: str = "whatsapp:+14155238886"
    TWILIO_TIMEOUT_S: float = 10.0
    TWILIO_VALIDATE_SIGNATURE: bool = False

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
