from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    service_name: str = "payments-orchestrator"
    app_env: str = "local"
    log_level: str = "INFO"

    callback_base_url: str = "http://localhost:8000"
    storage_backend: str = "json"
    stores_dir: str = "./stores"
    supported_currencies: set[str] = {"RUB", "USD", "EUR"}
    cancel_ignores_remote_failures: bool = True
    default_provider_id: str = "fake"

    fake_provider_enabled: bool = True
    fake_provider_success_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    fake_provider_auto_confirm_delay_seconds: float = Field(default=0.0, ge=0.0)
    fake_provider_seed: int | None = None

    tbank_enabled: bool = True
    tbank_terminal_id: str = ""
    tbank_secret_key: str = ""
    tbank_api_url: str = "https://securepay.tinkoff.ru/v2"

    provider_timeout_seconds: float = Field(default=10.0, gt=0)
    provider_breaker_failure_threshold: int = Field(default=3, ge=1)
    provider_breaker_recovery_seconds: float = Field(default=5.0, gt=0)
    provider_status_max_attempts: int = Field(default=3, ge=1)

    @property
    def normalized_callback_base_url(self) -> str:
        return self.callback_base_url.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    return Settings()
