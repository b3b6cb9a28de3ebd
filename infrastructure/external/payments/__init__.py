"""
Factory for payment gateway clients and the provider service built on them.
"""
from __future__ import annotations

from typing import Optional

from application.ports.payment_gateway import PaymentGateway
from application.services.payment_service import PaymentProviderService


def get_payment_gateway(provider: Optional[str] = None) -> PaymentGateway:
    name = (provider or "yookassa").lower()
    if name in {"yookassa", "yukassa"}:
        from .yookassa_client import YooKassaClient
        return YooKassaClient()
    raise ValueError(f"Unsupported payment provider: {name}")


def get_payment_provider(provider: Optional[str] = None) -> PaymentProviderService:
    return PaymentProviderService(gateway=get_payment_gateway(provider))
