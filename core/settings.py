"""
Payment-related settings using pydantic-settings v2 with nested env keys.

Kept apart from core.config.Settings; e.g. ``YOOKASSA__SHOP_ID``,
``TIMEOUTS__TOTAL``, ``WEBHOOK__IP_ALLOWLIST='["185.71.76.0/27"]'``.
"""
from __future__ import annotations

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class PaymentTimeouts(BaseModel):
    connect: float = 10.0
    read: float = 30.0
    write: float = 30.0
    total: float = 30.0


class PaymentRetry(BaseModel):
    # 0 = single attempt; the host owns retry policy
    max: int = 0
    base_backoff: float = 0.5


class WebhookSettings(BaseModel):
    ip_allowlist: list[str] | None = None  # Optional IPs/CIDRs allowed to post webhooks


class YooKassaSettings(BaseModel):
    shop_id: Optional[str] = None
    secret_key: Optional[str] = None
    return_url: str = "http://localhost:3001/checkout/success"
    api_url: str = "https://api.yookassa.ru/v3"
    description_template: str = "Order #{short_id}"

    @property
    def is_configured(self) -> bool:
        return bool(self.shop_id and self.secret_key)


class PaymentSettings(BaseSettings):
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)
    yookassa: YooKassaSettings = Field(default_factory=YooKassaSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()
