"""
Application service implementing the checkout payment-provider contract.

This class depends only on the application PaymentGateway port and DTOs.
The gateway is injected from the composition root (API/tasks), keeping
dependencies one-way.

Every operation except ``refund_payment`` is recoverable: gateway, network,
validation and business-rule failures are logged and returned as a
``ProviderResult`` carrying ``data["error"]`` so checkout can render the
message. ``refund_payment`` raises instead.
"""
from __future__ import annotations

import hashlib
import uuid
from decimal import Decimal
from typing import Any, Mapping, Optional

from application.dtos.payments import (
    GatewayAmount,
    GatewayPayment,
    ProviderResult,
    WebhookActionResult,
    WebhookPayload,
)
from application.ports.payment_gateway import PaymentGateway
from application.services.webhook_translator import WebhookTranslator
from core.logging_config import get_logger
from core.settings import payment_settings
from domain.payment.exceptions import (
    BusinessRuleViolation,
    PaymentBridgeError,
    PaymentValidationError,
)
from domain.payment.money import MIN_PAYMENT_MINOR, is_valid_amount, minor_to_major
from domain.payment.status import (
    GatewayPaymentStatus,
    PaymentSessionStatus,
    map_for_authorize,
    map_for_status_query,
)


logger = get_logger(__name__)

MISSING_ID_MESSAGE = "Payment id is missing"


def _operation_key(op: str, payment_id: str, *parts: Any) -> str:
    # Stable per (operation, payment) so a host-side retry is replayed, not repeated
    base = "|".join([op, payment_id, *(str(p) for p in parts)])
    return hashlib.sha256(base.encode("utf-8")).hexdigest()


def _external_id(data: Optional[Mapping[str, Any]]) -> Optional[str]:
    if not data:
        return None
    value = data.get("id")
    return str(value) if value else None


def _with_error(data: Optional[Mapping[str, Any]], message: str) -> dict[str, Any]:
    return {**(data or {}), "error": message}


def _valid_currency(code: str) -> bool:
    return len(code) == 3 and code.isascii() and code.isalpha()


class PaymentProviderService:
    identifier = "yookassa"

    def __init__(self, gateway: PaymentGateway, translator: Optional[WebhookTranslator] = None) -> None:
        self.gateway = gateway
        self.translator = translator or WebhookTranslator()

    def _log_failure(self, operation: str, exc: PaymentBridgeError, payment_id: Optional[str] = None) -> None:
        logger.error(
            "payment_operation_failed",
            operation=operation,
            provider=self.gateway.provider,
            payment_id=payment_id,
            error_type=exc.error_type,
            error=exc.message,
            retryable=exc.retryable,
        )

    def _missing_id(self, operation: str) -> None:
        logger.warning("payment_missing_external_id", operation=operation, provider=self.gateway.provider)

    async def initiate_payment(
        self,
        amount: Any,
        currency_code: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ProviderResult:
        if not is_valid_amount(amount):
            logger.error("payment_initiate_invalid_amount", amount=str(amount))
            return ProviderResult(
                id="",
                status=PaymentSessionStatus.ERROR,
                data={"error": f"Invalid payment amount: {amount}"},
            )

        currency = (currency_code or "RUB").upper()
        if not _valid_currency(currency):
            logger.error("payment_initiate_invalid_currency", currency=currency_code)
            return ProviderResult(
                id="",
                status=PaymentSessionStatus.ERROR,
                data={"error": f"Invalid currency code: {currency_code}"},
            )

        try:
            amount_major = minor_to_major(amount)
        except PaymentValidationError as exc:
            logger.error("payment_initiate_invalid_amount", amount=str(amount))
            return ProviderResult(id="", status=PaymentSessionStatus.ERROR, data={"error": exc.message})

        if Decimal(str(amount)) < MIN_PAYMENT_MINOR:
            logger.error("payment_initiate_below_minimum", amount=amount_major, currency=currency)
            return ProviderResult(
                id="",
                status=PaymentSessionStatus.ERROR,
                data={"error": f"Payment amount {amount_major} {currency} is below the minimum of 1.00"},
            )

        context = context or {}
        session_id = str(context.get("idempotency_key") or uuid.uuid4())
        cfg = payment_settings.yookassa
        body = {
            "amount": {"value": amount_major, "currency": currency},
            "confirmation": {"type": "redirect", "return_url": cfg.return_url},
            "capture": True,
            "description": cfg.description_template.format(short_id=session_id[:8]),
            "metadata": {"session_id": session_id},
        }

        try:
            payment = await self.gateway.create_payment(body, idempotency_key=session_id)
        except PaymentBridgeError as exc:
            self._log_failure("initiate_payment", exc)
            return ProviderResult(
                id="",
                status=PaymentSessionStatus.ERROR,
                data={"error": exc.message, "session_id": session_id},
            )

        logger.info(
            "payment_initiated",
            provider=self.gateway.provider,
            payment_id=payment.id,
            amount=amount_major,
            currency=currency,
            status=payment.status.value,
            session_id=session_id,
        )
        return ProviderResult(
            id=payment.id,
            status=PaymentSessionStatus.PENDING,
            data={
                "id": payment.id,
                "status": payment.status.value,
                "confirmation_url": payment.confirmation_url,
                "session_id": session_id,
            },
        )

    async def authorize_payment(self, data: Optional[Mapping[str, Any]]) -> ProviderResult:
        payment_id = _external_id(data)
        if not payment_id:
            self._missing_id("authorize_payment")
            return ProviderResult(status=PaymentSessionStatus.ERROR, data=_with_error(data, MISSING_ID_MESSAGE))

        try:
            payment = await self.gateway.get_payment(payment_id)
        except PaymentBridgeError as exc:
            self._log_failure("authorize_payment", exc, payment_id)
            return ProviderResult(status=PaymentSessionStatus.ERROR, data=_with_error(data, exc.message))

        status = map_for_authorize(payment.status)
        logger.info("payment_authorize_checked", payment_id=payment.id, gateway_status=payment.status.value, status=status.value)
        return ProviderResult(
            status=status,
            data={
                "id": payment.id,
                "status": payment.status.value,
                "paid": payment.paid,
                "session_id": payment.session_id,
            },
        )

    async def capture_payment(self, data: Optional[Mapping[str, Any]]) -> ProviderResult:
        payment_id = _external_id(data)
        if not payment_id:
            self._missing_id("capture_payment")
            return ProviderResult(data=_with_error(data, MISSING_ID_MESSAGE))

        try:
            payment = await self.gateway.get_payment(payment_id)

            if payment.status == GatewayPaymentStatus.SUCCEEDED:
                logger.info("payment_capture_already_succeeded", payment_id=payment_id)
                return ProviderResult(data=self._summary(payment))

            if payment.status == GatewayPaymentStatus.WAITING_FOR_CAPTURE:
                captured = await self.gateway.capture_payment(
                    payment_id,
                    payment.amount,
                    idempotency_key=_operation_key("capture", payment_id, payment.amount.value),
                )
                logger.info("payment_captured", payment_id=payment_id, status=captured.status.value)
                return ProviderResult(data=self._summary(captured))
        except PaymentBridgeError as exc:
            self._log_failure("capture_payment", exc, payment_id)
            return ProviderResult(data=_with_error(data, exc.message))

        violation = BusinessRuleViolation(
            f"Payment is in status {payment.status.value}, capture is not possible",
            details={"payment_id": payment_id, "status": payment.status.value},
        )
        logger.warning("payment_capture_not_possible", payment_id=payment_id, status=payment.status.value)
        return ProviderResult(data={**self._summary(payment), "error": violation.message})

    async def cancel_payment(self, data: Optional[Mapping[str, Any]]) -> ProviderResult:
        payment_id = _external_id(data)
        if not payment_id:
            self._missing_id("cancel_payment")
            return ProviderResult(data=_with_error(data, MISSING_ID_MESSAGE))

        try:
            current = await self.gateway.get_payment(payment_id)

            if current.status == GatewayPaymentStatus.SUCCEEDED:
                violation = BusinessRuleViolation(
                    "Payment has already succeeded and cannot be canceled; use refund instead",
                    details={"payment_id": payment_id},
                )
                logger.warning("payment_cancel_after_succeeded", payment_id=payment_id)
                return ProviderResult(
                    data={"id": current.id, "status": current.status.value, "error": violation.message}
                )

            if current.status == GatewayPaymentStatus.CANCELED:
                logger.info("payment_cancel_already_canceled", payment_id=payment_id)
                return ProviderResult(data={"id": current.id, "status": current.status.value})

            canceled = await self.gateway.cancel_payment(
                payment_id, idempotency_key=_operation_key("cancel", payment_id)
            )
        except PaymentBridgeError as exc:
            self._log_failure("cancel_payment", exc, payment_id)
            return ProviderResult(data=_with_error(data, exc.message))

        logger.info("payment_canceled", payment_id=payment_id)
        return ProviderResult(data={"id": canceled.id, "status": canceled.status.value})

    async def delete_payment(self, data: Optional[Mapping[str, Any]]) -> ProviderResult:
        # The gateway has no delete; sessions are simply dropped host-side
        return ProviderResult(data=dict(data or {}))

    async def get_payment_status(self, data: Optional[Mapping[str, Any]]) -> ProviderResult:
        payment_id = _external_id(data)
        if not payment_id:
            self._missing_id("get_payment_status")
            return ProviderResult(status=PaymentSessionStatus.ERROR)

        try:
            payment = await self.gateway.get_payment(payment_id)
        except PaymentBridgeError as exc:
            self._log_failure("get_payment_status", exc, payment_id)
            return ProviderResult(status=PaymentSessionStatus.ERROR, data=_with_error(data, exc.message))

        return ProviderResult(status=map_for_status_query(payment.status), data=self._summary(payment))

    async def refund_payment(self, data: Optional[Mapping[str, Any]], amount: Any) -> ProviderResult:
        """Refund ``amount`` minor units. Raises ``PaymentBridgeError`` on failure."""
        payment_id = _external_id(data)
        if not payment_id:
            logger.error("payment_refund_missing_external_id")
            raise PaymentValidationError("Cannot refund: payment id is missing")

        if not is_valid_amount(amount):
            logger.error("payment_refund_invalid_amount", payment_id=payment_id, amount=str(amount))
            raise PaymentValidationError(
                f"Invalid refund amount: {amount}", details={"payment_id": payment_id, "amount": str(amount)}
            )

        amount_major = minor_to_major(amount)
        if Decimal(amount_major) == 0:
            logger.error("payment_refund_zero_amount", payment_id=payment_id, amount=str(amount))
            raise PaymentValidationError(
                f"Refund amount {amount} rounds to 0.00", details={"payment_id": payment_id, "amount": str(amount)}
            )

        try:
            payment = await self.gateway.get_payment(payment_id)
            if not payment.refundable:
                raise BusinessRuleViolation(
                    f"Payment {payment_id} is not refundable (status: {payment.status.value})",
                    details={"payment_id": payment_id, "status": payment.status.value},
                )
            refund = await self.gateway.create_refund(
                payment_id,
                GatewayAmount(value=amount_major, currency=payment.amount.currency),
            )
        except PaymentBridgeError as exc:
            self._log_failure("refund_payment", exc, payment_id)
            raise

        logger.info(
            "payment_refunded",
            payment_id=payment_id,
            refund_id=refund.id,
            amount=amount_major,
            refund_status=refund.status,
        )
        return ProviderResult(data={**(data or {}), "refund_id": refund.id, "refund_status": refund.status})

    async def retrieve_payment(self, data: Optional[Mapping[str, Any]]) -> ProviderResult:
        payment_id = _external_id(data)
        if not payment_id:
            self._missing_id("retrieve_payment")
            return ProviderResult(data=_with_error(data, MISSING_ID_MESSAGE))

        try:
            payment = await self.gateway.get_payment(payment_id)
        except PaymentBridgeError as exc:
            self._log_failure("retrieve_payment", exc, payment_id)
            return ProviderResult(data=_with_error(data, exc.message))

        return ProviderResult(
            data={
                "id": payment.id,
                "status": payment.status.value,
                "amount": payment.amount.model_dump(),
                "paid": payment.paid,
                "created_at": payment.created_at,
                "description": payment.description,
            }
        )

    async def update_payment(
        self,
        data: Optional[Mapping[str, Any]],
        amount: Any,
        currency_code: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ProviderResult:
        """Replace the payment: best-effort cancel of the old one, then a fresh initiate."""
        old_id = _external_id(data)
        if old_id:
            canceled = await self.cancel_payment(data)
            if canceled.error:
                # The old payment may already be terminal
                logger.info("payment_update_cancel_skipped", payment_id=old_id, reason=canceled.error)

        return await self.initiate_payment(amount, currency_code, context)

    async def get_webhook_action_and_data(self, payload: WebhookPayload | Mapping[str, Any] | Any) -> WebhookActionResult:
        body = payload.data if isinstance(payload, WebhookPayload) else payload
        return self.translator.translate(body)

    async def aclose(self) -> None:
        close = getattr(self.gateway, "aclose", None)
        if callable(close):
            await close()

    @staticmethod
    def _summary(payment: GatewayPayment) -> dict[str, Any]:
        return {"id": payment.id, "status": payment.status.value, "paid": payment.paid}
