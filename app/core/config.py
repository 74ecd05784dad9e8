import os
import logging
from dotenv import load_dotenv
from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings
from typing import ClassVar, List

from app.constants.constants import WEEKDAY_NAMES

# Load environment variables from .env file
load_dotenv(".env", override=True)
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Class to store all the settings of the classroom progress service."""

    # ------------------------------
    # Database
    # ------------------------------
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./classroom.db", env="DATABASE_URL")
    DB_ECHO: bool = Field(default=False, env="DB_ECHO")

    # ------------------------------
    # Auth - Required in production
    # ------------------------------
    SECRET_KEY: str = Field(default="dev-secret-key", env="SECRET_KEY")
    ALGORITHM: str = Field(default="HS256", env="ALGORITHM")

    # ------------------------------
    # Environment
    # ------------------------------
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    TESTING_MODE: bool = Field(False, env="TESTING_MODE")
    FRONTEND_URL: str = Field(default="http://localhost:3000", env="FRONTEND_URL")

    # ------------------------------
    # Progress scheduler
    # ------------------------------
    SCHEDULER_ENABLED: bool = Field(True, env="SCHEDULER_ENABLED")
    SCHEDULER_TIMEZONE: str = Field(default="UTC", env="SCHEDULER_TIMEZONE")
    DAILY_PROGRESS_HOUR: int = Field(default=2, ge=0, le=23, env="DAILY_PROGRESS_HOUR")
    HOURLY_PROGRESS_START_HOUR: int = Field(default=8, ge=0, le=23, env="HOURLY_PROGRESS_START_HOUR")
    HOURLY_PROGRESS_END_HOUR: int = Field(default=20, ge=0, le=23, env="HOURLY_PROGRESS_END_HOUR")
    CLEANUP_WEEKDAY: str = Field(default="sunday", env="CLEANUP_WEEKDAY")
    CLEANUP_HOUR: int = Field(default=0, ge=0, le=23, env="CLEANUP_HOUR")
    INSIGHT_RETENTION_DAYS: int = Field(default=30, ge=1, env="INSIGHT_RETENTION_DAYS")

    # ------------------------------
    # Metrics
    # ------------------------------
    WEEK_START_DAY: str = Field(default="sunday", env="WEEK_START_DAY")

    # ------------------------------
    # Database models
    # ------------------------------
    DB_MODELS: ClassVar[List[str]] = [
        "app.models.user",
        "app.models.team",
        "app.models.task",
        "app.models.messaging",
        "app.models.progress",
    ]

    # ------------------------------
    # Validators
    # ------------------------------
    @field_validator("WEEK_START_DAY", "CLEANUP_WEEKDAY")
    @classmethod
    def validate_weekday(cls, value: str) -> str:
        day = value.strip().lower()
        if day not in WEEKDAY_NAMES:
            raise ValueError(f"Unknown weekday '{value}', expected one of: {', '.join(WEEKDAY_NAMES)}")
        return day

    # ------------------------------
    # Computed Fields
    # ------------------------------
    @computed_field
    @property
    def WEEK_START_WEEKDAY(self) -> int:
        """Weekday number (Monday == 0) the metrics week starts on."""
        return WEEKDAY_NAMES[self.WEEK_START_DAY]

    @computed_field
    @property
    def CLEANUP_WEEKDAY_NUMBER(self) -> int:
        """Weekday number (Monday == 0) the insight cleanup runs on."""
        return WEEKDAY_NAMES[self.CLEANUP_WEEKDAY]

    class Config:
        """Configuration for the settings class."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate the settings
settings = Settings()
