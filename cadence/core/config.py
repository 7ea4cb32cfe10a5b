"""Configuration via environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    # Store
    age_recipient: str = ""
    age_identity: str = ""
    data_store_path: Path = Path("data/store")
    data_audit_path: Path = Path("data/audit")

    # Analytics
    monthly_goal_target: int = 20
    rolling_rate_days: int = 30
    critical_window_days: int = 90
    min_weekday_samples: int = 4

    # App
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    api_key: str = ""
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
