"""
YooKassa REST API v3 adapter.

Notes on the API (https://yookassa.ru/developers/api):
- HTTP Basic auth with ``shop_id:secret_key``.
- Every POST needs an ``Idempotence-Key`` header; the gateway replays the
  stored answer for a repeated key instead of charging twice.
- Amounts are ``{"value": "450.00", "currency": "RUB"}`` in major units.
"""
from __future__ import annotations

import base64
from typing import Any, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from application.dtos.payments import GatewayAmount, GatewayPayment, GatewayRefund
from core.settings import payment_settings
from domain.payment.exceptions import GatewayError, GatewayNotConfiguredError
from infrastructure.external.payments.base import BasePaymentClient

M = TypeVar("M", bound=BaseModel)

_STATUS_MESSAGES = {
    401: "YooKassa: invalid credentials (shop_id/secret_key)",
    403: "YooKassa: access denied, check the shop permissions",
    429: "YooKassa: request rate limit exceeded, try again later",
}


class YooKassaClient(BasePaymentClient):
    provider = "yookassa"
    idempotency_header = "Idempotence-Key"

    def __init__(
        self,
        *,
        shop_id: Optional[str] = None,
        secret_key: Optional[str] = None,
        api_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        cfg = payment_settings.yookassa
        super().__init__(
            base_url=api_url or cfg.api_url,
            timeouts=payment_settings.timeouts.model_dump(),
            retry={"max": payment_settings.retry.max, "base": payment_settings.retry.base_backoff},
            transport=transport,
        )
        self.shop_id = shop_id if shop_id is not None else cfg.shop_id
        self.secret_key = secret_key if secret_key is not None else cfg.secret_key

    def _ensure_configured(self) -> None:
        if not self.shop_id or not self.secret_key:
            raise GatewayNotConfiguredError(
                "YooKassa is not configured: set YOOKASSA__SHOP_ID and YOOKASSA__SECRET_KEY",
                provider=self.provider,
            )

    def _auth_headers(self) -> dict[str, str]:
        token = base64.b64encode(f"{self.shop_id}:{self.secret_key}".encode("utf-8")).decode("ascii")
        return {"Authorization": f"Basic {token}"}

    def _describe_status(self, status_code: int) -> str:
        if status_code in _STATUS_MESSAGES:
            return _STATUS_MESSAGES[status_code]
        if status_code >= 500:
            return f"YooKassa: service unavailable ({status_code}), retry later"
        return f"YooKassa: request rejected with status {status_code}"

    def _parse(self, model: type[M], payload: Any) -> M:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise GatewayError(
                f"YooKassa: unexpected {model.__name__} payload",
                body=str(payload),
                provider=self.provider,
                details={"errors": exc.errors(include_url=False)},
            ) from exc

    @staticmethod
    def _payment_path(payment_id: str, action: str = "") -> str:
        path = f"/payments/{quote(payment_id, safe='')}"
        return f"{path}/{action}" if action else path

    async def create_payment(self, body: dict[str, Any], *, idempotency_key: Optional[str] = None) -> GatewayPayment:
        payload = await self._request("POST", "/payments", json=body, idempotency_key=idempotency_key)
        return self._parse(GatewayPayment, payload)

    async def get_payment(self, payment_id: str) -> GatewayPayment:
        payload = await self._request("GET", self._payment_path(payment_id))
        return self._parse(GatewayPayment, payload)

    async def capture_payment(
        self, payment_id: str, amount: GatewayAmount, *, idempotency_key: Optional[str] = None
    ) -> GatewayPayment:
        payload = await self._request(
            "POST",
            self._payment_path(payment_id, "capture"),
            json={"amount": amount.model_dump()},
            idempotency_key=idempotency_key,
        )
        return self._parse(GatewayPayment, payload)

    async def cancel_payment(self, payment_id: str, *, idempotency_key: Optional[str] = None) -> GatewayPayment:
        payload = await self._request(
            "POST",
            self._payment_path(payment_id, "cancel"),
            json={},
            idempotency_key=idempotency_key,
        )
        return self._parse(GatewayPayment, payload)

    async def create_refund(
        self, payment_id: str, amount: GatewayAmount, *, idempotency_key: Optional[str] = None
    ) -> GatewayRefund:
        payload = await self._request(
            "POST",
            "/refunds",
            json={"payment_id": payment_id, "amount": amount.model_dump()},
            idempotency_key=idempotency_key,
        )
        return self._parse(GatewayRefund, payload)
