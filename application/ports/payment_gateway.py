"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from application.dtos.payments import GatewayAmount, GatewayPayment, GatewayRefund


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for the external payment provider.

    Implementations are async, raise ``PaymentBridgeError`` subclasses on
    failure and are side-effect free beyond IO.
    """

    provider: str

    async def create_payment(self, body: dict[str, Any], *, idempotency_key: Optional[str] = None) -> GatewayPayment: ...

    async def get_payment(self, payment_id: str) -> GatewayPayment: ...

    async def capture_payment(
        self, payment_id: str, amount: GatewayAmount, *, idempotency_key: Optional[str] = None
    ) -> GatewayPayment: ...

    async def cancel_payment(self, payment_id: str, *, idempotency_key: Optional[str] = None) -> GatewayPayment: ...

    async def create_refund(
        self, payment_id: str, amount: GatewayAmount, *, idempotency_key: Optional[str] = None
    ) -> GatewayRefund: ...

    async def aclose(self) -> None: ...
