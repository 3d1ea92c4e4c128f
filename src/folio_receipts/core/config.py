from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    environment: str = "dev"
    site_url: str = "http://localhost:8000"
    site_name: str = "Folio"

    database_url: str = "sqlite:///./folio_receipts.db"
    redis_url: str = "redis://localhost:6379/0"

    storage_backend: Literal["local", "s3"] = "local"
    local_storage_path: Path = Path(".local_storage")

    s3_endpoint_url: str | None = None
    s3_region: str | None = None
    s3_bucket: str = "folio-receipts"
    s3_access_key_id: str | None = None
    s3_secret_access_key: str | None = None

    receipt_ai_enabled: bool = True
    ai_api_key: str | None = None
    ai_base_url: str = "https://openrouter.ai/api/v1"
    receipt_ai_model: str = "google/gemini-2.0-flash-001"
    receipt_ai_temperature: float = 0.2
    receipt_ai_max_tokens: int = 1200
    receipt_ai_timeout_seconds: float = 60.0
    receipt_ai_max_chars: int = 12000

    receipt_default_currency: str = "EUR"
    receipt_feedback_cap: int = 30
    receipt_preference_limit: int = 500

    dispatch_backend: Literal["thread", "celery"] = "thread"
    dispatch_max_workers: int = 4
    dispatch_lock_ttl_seconds: int = 15 * 60


settings = Settings()
