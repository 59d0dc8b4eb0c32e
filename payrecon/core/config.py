"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./reconciliation.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class SecuritySettings(BaseModel):
    secret_key: str = Field(default="change-me", min_length=8)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 12
    # Keys accepted in X-Internal-Api-Key (storefront backend, webhook relays).
    internal_api_keys: list[str] = Field(default_factory=list)


class PaymentSettings(BaseModel):
    storage: Literal["database", "memory"] = "database"
    default_window_seconds: int = Field(default=60, gt=0)
    windows: dict[str, int] = Field(default_factory=lambda: {"bank_transfer": 60, "wallet_qr": 60})
    sweep_interval_seconds: float = Field(default=1.0, gt=0)
    autostart_scheduler: bool = True
    code_prefix: str = "DH"
    code_length: int = Field(default=6, ge=4, le=16)
    currency: str = "VND"
    minor_unit_exponent: int = Field(default=0, ge=0, le=4)
    timezone: str = "UTC"

    def window_for(self, channel: str) -> int:
        return self.windows.get(channel, self.default_window_seconds)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: Literal["plain", "json"] = "plain"


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Payment Reconciliation Service"
    api_prefix: str = "/api"

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    security: SecuritySettings = SecuritySettings()
    payments: PaymentSettings = PaymentSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def secret_key(self) -> str:
        return self.security.secret_key

    @property
    def algorithm(self) -> str:
        return self.security.algorithm

    @property
    def access_token_expire_minutes(self) -> int:
        return self.security.access_token_expire_minutes


@lru_cache()
def get_settings() -> Settings:
    return Settings()
