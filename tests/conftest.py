"""Pytest bootstrap configuration.

Environment defaults are set before application settings are imported;
shared payment fixtures live here.
"""
import os

import pytest

os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("RETRY__MAX", "0")

from application.dtos.payments import GatewayAmount, GatewayPayment, GatewayRefund  # noqa: E402
from domain.payment.status import GatewayPaymentStatus  # noqa: E402


def make_payment(status: str = "pending", **overrides) -> GatewayPayment:
    payload = {
        "id": "2c5d7f2a-000f-5000-9000-1b6d5c0e0e5b",
        "status": status,
        "amount": {"value": "450.00", "currency": "RUB"},
        "paid": status in {"waiting_for_capture", "succeeded"},
        "refundable": status == "succeeded",
        "confirmation": {
            "type": "redirect",
            "confirmation_url": "https://yoomoney.ru/checkout/payments/v2/contract?orderId=2c5d7f2a",
        },
        "metadata": {"session_id": "sess_01"},
        "created_at": "2024-05-01T10:00:00.000Z",
        "description": "Order #sess_01",
    }
    payload.update(overrides)
    return GatewayPayment.model_validate(payload)


class FakeGateway:
    """In-memory PaymentGateway; records every call."""

    provider = "yookassa"

    def __init__(self, payment: GatewayPayment | None = None, *, errors: dict | None = None):
        self.payment = payment or make_payment()
        self.errors = errors or {}
        self.calls: list[tuple] = []
        self.closed = False

    def _maybe_fail(self, op: str) -> None:
        if op in self.errors:
            raise self.errors[op]

    async def create_payment(self, body, *, idempotency_key=None):
        self.calls.append(("create_payment", body, idempotency_key))
        self._maybe_fail("create_payment")
        return make_payment(
            "pending",
            amount=body["amount"],
            metadata=body["metadata"],
            description=body["description"],
        )

    async def get_payment(self, payment_id):
        self.calls.append(("get_payment", payment_id))
        self._maybe_fail("get_payment")
        return self.payment

    async def capture_payment(self, payment_id, amount: GatewayAmount, *, idempotency_key=None):
        self.calls.append(("capture_payment", payment_id, amount, idempotency_key))
        self._maybe_fail("capture_payment")
        return self.payment.model_copy(update={"status": GatewayPaymentStatus.SUCCEEDED, "paid": True})

    async def cancel_payment(self, payment_id, *, idempotency_key=None):
        self.calls.append(("cancel_payment", payment_id, idempotency_key))
        self._maybe_fail("cancel_payment")
        return self.payment.model_copy(update={"status": GatewayPaymentStatus.CANCELED})

    async def create_refund(self, payment_id, amount: GatewayAmount, *, idempotency_key=None):
        self.calls.append(("create_refund", payment_id, amount, idempotency_key))
        self._maybe_fail("create_refund")
        return GatewayRefund(id="rf_1", status="succeeded", amount=amount, payment_id=payment_id)

    async def aclose(self):
        self.closed = True

    def called(self, op: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == op]


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def webhook_body():
    def _build(event: str = "payment.succeeded", **object_overrides) -> dict:
        obj = {
            "id": "2c5d7f2a-000f-5000-9000-1b6d5c0e0e5b",
            "status": "succeeded",
            "amount": {"value": "450.00", "currency": "RUB"},
            "metadata": {"session_id": "sess_01"},
        }
        obj.update(object_overrides)
        return {"type": "notification", "event": event, "object": obj}
    return _build


@pytest.fixture
def payment_factory():
    return make_payment


@pytest.fixture
def gateway_factory():
    return FakeGateway
