# backend/lessonbook/core/config.py
import logging
import os
from pathlib import Path
from typing import List, Literal

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    if env_path.exists():
        logger.info(f"[CONFIG] Loading .env from: {env_path}")
        load_dotenv(env_path)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["local", "development", "test", "production"] = "local"
    log_level: str = "INFO"

    # Database
    database_url: str = Field(
        default="sqlite:///./lessonbook.db",
        description="SQLAlchemy URL; postgresql:// URLs use psycopg2",
    )
    db_pool_size: int = 10
    db_max_overflow: int = 5
    db_pool_timeout: int = 10
    db_echo: bool = False

    # Auth
    secret_key: SecretStr = Field(
        default=SecretStr("dev-secret-key-change-me-before-deploying"),
        description="Secret key for JWT tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720  # 12 hours

    # Scheduling policy
    reference_timezone: str = Field(
        default="Asia/Seoul",
        description="Timezone in which weekdays and operating hours are evaluated",
    )
    operating_hours_start: str = "09:00"
    operating_hours_end: str = "22:00"
    slot_step_minutes: int = 30
    lesson_page_size: int = 20

    cors_allow_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    @field_validator("database_url")
    @classmethod
    def _normalize_database_url(cls, v: str) -> str:
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+psycopg2://", 1)
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+psycopg2://", 1)
        return v

    @field_validator("operating_hours_start", "operating_hours_end")
    @classmethod
    def _validate_hhmm(cls, v: str) -> str:
        hour, _, minute = v.partition(":")
        if not (len(hour) == 2 and len(minute) == 2 and hour.isdigit() and minute.isdigit()):
            raise ValueError(f"Expected HH:MM, got {v!r}")
        if not (0 <= int(hour) <= 24 and 0 <= int(minute) < 60):
            raise ValueError(f"Out of range time of day: {v!r}")
        return v

    @model_validator(mode="after")
    def _validate_operating_hours(self) -> "Settings":
        if self.operating_hours_start >= self.operating_hours_end:
            raise ValueError("operating_hours_start must be before operating_hours_end")
        if self.slot_step_minutes <= 0:
            raise ValueError("slot_step_minutes must be positive")
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
