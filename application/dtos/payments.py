"""
Payment DTOs (Pydantic v2) used at application boundaries.

Gateway models mirror the YooKassa REST objects (extra fields tolerated);
provider models are the shapes returned to the host checkout flow.
"""
from __future__ import annotations

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.payment.status import (
    GatewayPaymentStatus,
    PaymentSessionStatus,
    WebhookAction,
    WebhookRejectReason,
)


class GatewayAmount(BaseModel):
    value: str
    currency: str = "RUB"

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        return (v or "").upper()


class GatewayConfirmation(BaseModel):
    type: str
    confirmation_url: Optional[str] = None
    return_url: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class GatewayPayment(BaseModel):
    id: str
    status: GatewayPaymentStatus
    amount: GatewayAmount
    paid: bool = False
    refundable: bool = False
    confirmation: Optional[GatewayConfirmation] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    @field_validator("metadata", mode="before")
    @classmethod
    def _none_metadata(cls, v: Any) -> Any:
        return v or {}

    @property
    def session_id(self) -> Optional[str]:
        value = self.metadata.get("session_id")
        return str(value) if value else None

    @property
    def confirmation_url(self) -> str:
        if self.confirmation and self.confirmation.confirmation_url:
            return self.confirmation.confirmation_url
        return ""


class GatewayRefund(BaseModel):
    id: str
    status: str
    amount: GatewayAmount
    payment_id: str
    created_at: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class ProviderResult(BaseModel):
    """Result of a recoverable provider operation.

    Failures are carried as ``data["error"]`` (and, where the contract has a
    status, ``status=error``) instead of being raised.
    """

    id: Optional[str] = None
    status: Optional[PaymentSessionStatus] = None
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def error(self) -> Optional[str]:
        return self.data.get("error")


class WebhookPayload(BaseModel):
    data: Any = None
    raw_data: Optional[bytes] = None
    headers: dict[str, Any] = Field(default_factory=dict)


class WebhookActionData(BaseModel):
    session_id: str = ""
    amount: int = 0


class WebhookActionResult(BaseModel):
    action: WebhookAction
    data: WebhookActionData = Field(default_factory=WebhookActionData)
    reason: Optional[WebhookRejectReason] = None


class InitiatePaymentRequest(BaseModel):
    amount: float
    currency_code: str = "RUB"
    context: dict[str, Any] = Field(default_factory=dict)


class RefundPaymentRequest(BaseModel):
    amount: float
