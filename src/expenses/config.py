from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    mongo_url: str = ""  # empty → disabled-remote mode (local only)
    mongo_database: str = "expense_tracker"
    mongo_collection: str = "expenses"
    database_url: str = "sqlite:///./expenses.db"

    # Reachability probe: a bare TCP connect, public DNS by default
    connectivity_probe_host: str = "8.8.8.8"
    connectivity_probe_port: int = 53
    connectivity_probe_timeout: float = 3.0
    connectivity_check_seconds: int = 30

    remote_timeout_seconds: float = 10.0
    remote_retries: int = 2
    remote_retry_backoff_seconds: float = 0.5

    track_pending_deletes: bool = True
    pending_sync_retry_minutes: int = 15

    api_host: str = "127.0.0.1"
    api_port: int = 8000

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
