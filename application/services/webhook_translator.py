"""
Translates inbound gateway webhook payloads into checkout webhook actions.

Pure and side-effect free apart from logging, so a redelivered webhook can
be reprocessed safely. Every rejection path returns early with a tagged
reason; nothing here raises.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from application.dtos.payments import WebhookActionData, WebhookActionResult
from core.logging_config import get_logger
from domain.payment.money import major_to_minor
from domain.payment.status import (
    INFORMATIONAL_EVENTS,
    WEBHOOK_EVENT_ACTIONS,
    WebhookAction,
    WebhookRejectReason,
)


logger = get_logger(__name__)


def _reject(reason: WebhookRejectReason, *, session_id: str = "", amount: int = 0) -> WebhookActionResult:
    return WebhookActionResult(
        action=WebhookAction.NOT_SUPPORTED,
        data=WebhookActionData(session_id=session_id, amount=amount),
        reason=reason,
    )


def _extract_amount(obj: Mapping[str, Any]) -> int:
    amount = obj.get("amount")
    if not isinstance(amount, Mapping):
        return 0
    return major_to_minor(amount.get("value", "0"))


def _extract_session_id(obj: Mapping[str, Any]) -> Optional[str]:
    metadata = obj.get("metadata")
    if not isinstance(metadata, Mapping):
        return None
    session_id = metadata.get("session_id")
    return str(session_id) if session_id else None


class WebhookTranslator:
    provider = "yookassa"

    def translate(self, payload: Any) -> WebhookActionResult:
        if not isinstance(payload, Mapping):
            logger.warning("webhook_invalid_payload", provider=self.provider, payload_type=type(payload).__name__)
            return _reject(WebhookRejectReason.INVALID_PAYLOAD)

        event = payload.get("event")
        if not isinstance(event, str) or not event:
            logger.warning("webhook_missing_event", provider=self.provider)
            return _reject(WebhookRejectReason.MISSING_EVENT)

        obj = payload.get("object")
        if not isinstance(obj, Mapping):
            logger.warning("webhook_missing_object", provider=self.provider, webhook_event=event)
            return _reject(WebhookRejectReason.MISSING_OBJECT)

        payment_id = obj.get("id")
        if not payment_id:
            logger.warning("webhook_missing_payment_id", provider=self.provider, webhook_event=event)
            return _reject(WebhookRejectReason.MISSING_PAYMENT_ID)

        session_id = _extract_session_id(obj)
        if not session_id:
            # e.g. refunds started from the gateway dashboard carry no metadata
            logger.warning("webhook_missing_session_id", provider=self.provider, webhook_event=event, payment_id=payment_id)
            session_id = ""

        amount = _extract_amount(obj)
        logger.info(
            "webhook_received",
            provider=self.provider,
            webhook_event=event,
            payment_id=payment_id,
            session_id=session_id,
            amount=amount,
        )

        action = WEBHOOK_EVENT_ACTIONS.get(event)
        if action is not None:
            return WebhookActionResult(
                action=action,
                data=WebhookActionData(session_id=session_id, amount=amount),
            )

        if event in INFORMATIONAL_EVENTS:
            logger.info("webhook_informational_event", provider=self.provider, webhook_event=event, payment_id=payment_id)
            return _reject(WebhookRejectReason.INFORMATIONAL_EVENT, session_id=session_id, amount=amount)

        logger.warning("webhook_unknown_event", provider=self.provider, webhook_event=event, payment_id=payment_id)
        return _reject(WebhookRejectReason.UNKNOWN_EVENT, session_id=session_id)
