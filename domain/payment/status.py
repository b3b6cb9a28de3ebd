"""
Closed status vocabularies of the gateway and of the checkout provider
contract, plus the two gateway→provider mapping tables.

Payments are created with auto-capture, so the gateway often jumps straight
to ``succeeded``. ``authorize_payment`` must still report ``authorized`` so
the host can run its own capture step, while a status query reports the
real ``captured`` state. Hence two tables.
"""
from __future__ import annotations

from enum import Enum


class GatewayPaymentStatus(str, Enum):
    PENDING = "pending"
    WAITING_FOR_CAPTURE = "waiting_for_capture"
    SUCCEEDED = "succeeded"
    CANCELED = "canceled"


class PaymentSessionStatus(str, Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    CANCELED = "canceled"
    ERROR = "error"
    REQUIRES_MORE = "requires_more"


class WebhookAction(str, Enum):
    CAPTURED = "captured"
    AUTHORIZED = "authorized"
    FAILED = "failed"
    NOT_SUPPORTED = "not_supported"


class WebhookRejectReason(str, Enum):
    INVALID_PAYLOAD = "invalid_payload"
    MISSING_EVENT = "missing_event"
    MISSING_OBJECT = "missing_object"
    MISSING_PAYMENT_ID = "missing_payment_id"
    INFORMATIONAL_EVENT = "informational_event"
    UNKNOWN_EVENT = "unknown_event"


AUTHORIZE_STATUS_MAP: dict[GatewayPaymentStatus, PaymentSessionStatus] = {
    GatewayPaymentStatus.PENDING: PaymentSessionStatus.PENDING,
    GatewayPaymentStatus.WAITING_FOR_CAPTURE: PaymentSessionStatus.AUTHORIZED,
    GatewayPaymentStatus.SUCCEEDED: PaymentSessionStatus.AUTHORIZED,
    GatewayPaymentStatus.CANCELED: PaymentSessionStatus.CANCELED,
}

STATUS_QUERY_MAP: dict[GatewayPaymentStatus, PaymentSessionStatus] = {
    GatewayPaymentStatus.PENDING: PaymentSessionStatus.PENDING,
    GatewayPaymentStatus.WAITING_FOR_CAPTURE: PaymentSessionStatus.AUTHORIZED,
    GatewayPaymentStatus.SUCCEEDED: PaymentSessionStatus.CAPTURED,
    GatewayPaymentStatus.CANCELED: PaymentSessionStatus.CANCELED,
}

# Gateway event name -> action. Events absent here are not actionable.
WEBHOOK_EVENT_ACTIONS: dict[str, WebhookAction] = {
    "payment.succeeded": WebhookAction.CAPTURED,
    "payment.waiting_for_capture": WebhookAction.AUTHORIZED,
    "payment.canceled": WebhookAction.FAILED,
}

# Known but informational only; refund completion is not a checkout transition.
INFORMATIONAL_EVENTS = frozenset({"refund.succeeded"})

# Fail at import time if a gateway status is added without a mapping.
for _table in (AUTHORIZE_STATUS_MAP, STATUS_QUERY_MAP):
    _missing = set(GatewayPaymentStatus) - set(_table)
    if _missing:
        raise RuntimeError(f"status table missing gateway statuses: {sorted(s.value for s in _missing)}")


def map_for_authorize(status: GatewayPaymentStatus) -> PaymentSessionStatus:
    return AUTHORIZE_STATUS_MAP[GatewayPaymentStatus(status)]


def map_for_status_query(status: GatewayPaymentStatus) -> PaymentSessionStatus:
    return STATUS_QUERY_MAP[GatewayPaymentStatus(status)]
