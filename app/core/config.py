from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://safety:safety@db:5432/safety_compliance"
    APP_ENV: str = "development"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://supervisor.mine.example,https://app.mine.example"
    CORS_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"
    # "json" for production log shippers, "console" for local development
    LOG_FORMAT: Literal["json", "console"] = "json"

    # Reporting windows (days, inclusive of the reference day)
    DEFAULT_RANGE_DAYS: int = Field(default=7, ge=1)
    MAX_RANGE_DAYS: int = Field(default=90, ge=1)
    OVERVIEW_ALERT_LIMIT: int = Field(default=20, ge=1)

    # Extra attempts after a unique-constraint race on the snapshot row
    SNAPSHOT_WRITE_RETRIES: int = Field(default=1, ge=0)

    @model_validator(mode="after")
    def default_range_within_max(self) -> "Settings":
        if self.DEFAULT_RANGE_DAYS > self.MAX_RANGE_DAYS:
            raise ValueError("DEFAULT_RANGE_DAYS must not exceed MAX_RANGE_DAYS")
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
