"""Application configuration using pydantic settings with structured sections."""

from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    url: str = "sqlite+aiosqlite:///./ledger.db"
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class LedgerSettings(BaseModel):
    currency: str = Field(default="USD", min_length=3, max_length=3)
    platform_account_id: str = "platform"
    default_fee_percent: Decimal = Field(default=Decimal("10"), ge=0, le=100)
    max_write_attempts: int = Field(default=3, ge=1)
    retry_wait_seconds: float = Field(default=0.05, ge=0)
    dedup_window_seconds: int = Field(default=300, ge=0)
    gateway_timeout_seconds: float = Field(default=30.0, gt=0)


class StripeSettings(BaseModel):
    api_key: Optional[str] = None
    product_name: str = "Marketplace payment"

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


class PayPalSettings(BaseModel):
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    base_url: str = "https://api-m.sandbox.paypal.com"
    timeout: float = 30.0

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Top-level ledger settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Wallet Ledger"

    database: DatabaseSettings = DatabaseSettings()
    ledger: LedgerSettings = LedgerSettings()
    stripe: StripeSettings = StripeSettings()
    paypal: PayPalSettings = PayPalSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def currency(self) -> str:
        return self.ledger.currency.upper()

    @property
    def platform_account_id(self) -> str:
        return self.ledger.platform_account_id


@lru_cache()
def get_settings() -> Settings:
    return Settings()
