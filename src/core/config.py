from typing import Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (local embedded SQLite file by default)
    database_url: str = "sqlite+aiosqlite:///./school.sqlite"

    # App
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    # Can be a comma-separated string or list
    cors_allowed_origins: Union[str, list[str]] = "http://localhost:1420,http://localhost:5173"

    # Debt reports
    upcoming_days_default: int = 3
    # Overdue for more than this many days is "critical", otherwise "warning"
    critical_overdue_days: int = 5
    critical_alert_days: int = 7

    # Dashboard
    group_capacity: int = 20
    top_paying_limit: int = 10

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_database_url(cls, v):
        """Use the async driver for plain sqlite:// URLs."""
        if not v:
            raise ValueError("DATABASE_URL is required")
        if isinstance(v, str) and v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


settings = Settings()
