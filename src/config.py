"""Process-wide settings, loaded once from the environment at startup."""
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

REQUIRED_CREDENTIALS = (
    "processor_key",
    "processor_passphrase",
    "processor_merchant_code",
    "origin_api_key",
    "origin_secret",
    "origin_merchant_id",
    "origin_api_url",
)


class Settings(BaseSettings):
    """Bridge settings read from ``BRIDGE_*`` environment variables."""

    # Processor gateway
    processor_key: str = Field(..., description="Processor API signing key")
    processor_passphrase: str = Field(..., description="Processor passphrase (PassP)")
    processor_merchant_code: str = Field(..., description="Processor terminal id (Masof)")
    processor_base_url: str = Field(default="https://icom.yaad.net/p/")
    processor_timeout: float = Field(default=15.0, gt=0)
    processor_max_retries: int = Field(default=2, ge=0)

    # Origin gateway
    origin_api_key: str = Field(..., description="Sent as X-Auth-Token")
    origin_secret: str = Field(..., description="Shared HMAC secret for inbound requests")
    origin_outbound_secret: str | None = Field(
        default=None, description="HMAC secret for approval calls, defaults to origin_secret"
    )
    origin_merchant_id: str = Field(..., description="Sent as X-Merchant")
    origin_api_url: str = Field(..., description="Origin API base URL")
    origin_timeout: float = Field(default=15.0, gt=0)

    # Application
    app_env: Literal["development", "production"] = "development"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=0, le=65535)
    log_level: str = "INFO"
    alert_failure_threshold: float = Field(default=0.0, ge=0.0, le=1.0)
    call_log_size: int = Field(default=1000, gt=0)
    metrics_window_seconds: float = Field(default=300, gt=0)
    public_url: str | None = Field(
        default=None, description="Externally reachable bridge URL handed to the processor for returns"
    )

    model_config = SettingsConfigDict(
        env_prefix="BRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(*REQUIRED_CREDENTIALS)
    @classmethod
    def require_non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("origin_outbound_secret", "public_url")
    @classmethod
    def blank_optional_is_unset(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def outbound_secret(self) -> str:
        return self.origin_outbound_secret or self.origin_secret


@lru_cache
def get_settings() -> Settings:
    return Settings()
