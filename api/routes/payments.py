"""
Payments API routes.

The YooKassa webhook endpoint plus thin checkout routes over the
provider service. No gateway details here.
"""
from __future__ import annotations

import ipaddress
import json

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_payment_provider_service
from application.dtos.payments import InitiatePaymentRequest, RefundPaymentRequest, WebhookPayload
from application.services.payment_service import PaymentProviderService
from core.response import success_response
from core.logging_config import get_logger
from core.settings import payment_settings


router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)


def _ip_allowed(remote_ip: str | None, allowlist: list[str]) -> bool:
    if not remote_ip:
        return False
    try:
        rip = ipaddress.ip_address(remote_ip)
    except ValueError:
        return False
    for entry in allowlist:
        try:
            if "/" in entry:
                if rip in ipaddress.ip_network(entry, strict=False):
                    return True
            elif rip == ipaddress.ip_address(entry):
                return True
        except ValueError:
            logger.warning("webhook_allowlist_entry_invalid", entry=entry)
    return False


def _ack(message: str, **data):
    return success_response(data={"received": True, **data}, message=message)


@router.post("/yookassa/webhook", summary="YooKassa webhook")
async def yookassa_webhook(
    request: Request,
    service: PaymentProviderService = Depends(get_payment_provider_service),
):
    # Always 200; failures are reported in data.error
    allowlist = payment_settings.webhook.ip_allowlist or []
    remote_ip = request.client.host if request.client else None
    if allowlist and not _ip_allowed(remote_ip, allowlist):
        logger.warning("webhook_ip_not_allowed", remote_ip=remote_ip)
        return _ack("Webhook ignored", error="ip_not_allowed")

    raw_body = await request.body()
    try:
        body = json.loads(raw_body) if raw_body else None
    except ValueError:
        logger.warning("webhook_invalid_json", size=len(raw_body))
        return _ack("Webhook ignored", error="invalid_json")

    try:
        payload = WebhookPayload(data=body, raw_data=raw_body, headers=dict(request.headers))
        result = await service.get_webhook_action_and_data(payload)
    except Exception as exc:
        logger.error("webhook_processing_error", error=str(exc), exc_info=True)
        return _ack("Webhook processing failed", error="processing_error")

    data = {"action": result.action.value}
    if result.reason is not None:
        data["reason"] = result.reason.value
    logger.info(
        "webhook_acknowledged",
        action=result.action.value,
        reason=data.get("reason"),
        session_id=result.data.session_id,
        amount=result.data.amount,
    )
    return _ack("Webhook received", **data)


@router.post("/sessions", summary="Initiate payment", response_model=None)
async def initiate_payment(
    payload: InitiatePaymentRequest,
    service: PaymentProviderService = Depends(get_payment_provider_service),
):
    result = await service.initiate_payment(payload.amount, payload.currency_code, payload.context)
    return success_response(data=result.model_dump(mode="json"), message="Payment initiated")


@router.post("/{payment_id}/authorize", summary="Authorize payment")
async def authorize_payment(
    payment_id: str,
    service: PaymentProviderService = Depends(get_payment_provider_service),
):
    result = await service.authorize_payment({"id": payment_id})
    return success_response(data=result.model_dump(mode="json"), message="Payment authorization checked")


@router.post("/{payment_id}/capture", summary="Capture payment")
async def capture_payment(
    payment_id: str,
    service: PaymentProviderService = Depends(get_payment_provider_service),
):
    result = await service.capture_payment({"id": payment_id})
    return success_response(data=result.model_dump(mode="json"), message="Payment capture processed")


@router.post("/{payment_id}/cancel", summary="Cancel payment")
async def cancel_payment(
    payment_id: str,
    service: PaymentProviderService = Depends(get_payment_provider_service),
):
    result = await service.cancel_payment({"id": payment_id})
    return success_response(data=result.model_dump(mode="json"), message="Payment cancel processed")


@router.get("/{payment_id}", summary="Retrieve payment")
async def retrieve_payment(
    payment_id: str,
    service: PaymentProviderService = Depends(get_payment_provider_service),
):
    result = await service.retrieve_payment({"id": payment_id})
    return success_response(data=result.model_dump(mode="json"), message="Payment retrieved")


@router.get("/{payment_id}/status", summary="Payment status")
async def get_payment_status(
    payment_id: str,
    service: PaymentProviderService = Depends(get_payment_provider_service),
):
    result = await service.get_payment_status({"id": payment_id})
    return success_response(data=result.model_dump(mode="json"), message="Payment status")


@router.post("/{payment_id}/refunds", summary="Refund payment")
async def refund_payment(
    payment_id: str,
    payload: RefundPaymentRequest,
    service: PaymentProviderService = Depends(get_payment_provider_service),
):
    # Bridge errors propagate to the global handler
    result = await service.refund_payment({"id": payment_id}, payload.amount)
    return success_response(data=result.model_dump(mode="json"), message="Refund created")
