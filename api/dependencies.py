"""
API dependencies: payment provider and shipping client wiring
"""
from typing import AsyncIterator

from application.services.payment_service import PaymentProviderService
from infrastructure.external.payments import get_payment_provider
from infrastructure.external.shipping import CdekClient, get_cdek_client


async def get_payment_provider_service() -> AsyncIterator[PaymentProviderService]:
    """One provider service per request; its HTTP client is closed afterwards."""
    service = get_payment_provider()
    try:
        yield service
    finally:
        await service.aclose()


async def get_shipping_client() -> CdekClient:
    # Shared for the process so the OAuth token is reused
    return get_cdek_client()
