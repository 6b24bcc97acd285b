from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "pii_agent"
    db_username: str = "pii_agent"
    db_password: str = "secret"

    preferences_backend: str = "memory"

    detector_provider: str = "http"
    detector_base_url: str = "http://localhost:8000"
    detector_language: str = "en"
    detector_timeout_seconds: float = 30.0
    detector_health_timeout_seconds: float = 5.0

    default_strategy: str = "auto"

    response_timeout_seconds: float = Field(default=60.0, gt=0)
    stability_checks: int = Field(default=3, ge=1)
    stability_interval_seconds: float = Field(default=0.3, gt=0)

    revert_max_attempts: int = Field(default=5, ge=1)
    revert_attempt_interval_seconds: float = Field(default=0.4, ge=0)
    revert_stall_after_attempts: int = Field(default=2, ge=1)

    mapping_clear_delay_seconds: float = Field(default=2.0, ge=0)
    dispatch_guard_seconds: float = Field(default=3.0, ge=0)

    faker_locale: str = "en_US"
    faker_seed: int | None = None
