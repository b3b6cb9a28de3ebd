"""
CDEK API v2 client (OAuth 2.0 client credentials).

Docs: https://api-docs.cdek.ru/29923741.html
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from application.dtos.shipping import CdekCity, CdekDeliveryPoint, CdekPackage, CdekTariff
from core.config import CdekSettings, settings
from core.logging_config import get_logger
from infrastructure.external.api_clients.base import APIError, AuthenticationError, BaseAPIClient
from infrastructure.external.shipping.exceptions import ShippingError, ShippingNotConfiguredError
from infrastructure.external.shipping.token_cache import TokenCache


logger = get_logger(__name__)

# Warehouse-to-warehouse tariffs for pickup points: primary, then economy
PARCEL_TARIFF = (136, "Посылка")
ECONOMY_PARCEL_TARIFF = (234, "Экономичная посылка")


class CdekClient(BaseAPIClient):
    carrier = "cdek"

    def __init__(
        self,
        config: Optional[CdekSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or settings.cdek
        super().__init__(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            max_retries=self.config.max_retries,
            retry_delay=self.config.retry_delay,
            transport=transport,
        )
        self.tokens = TokenCache(self._fetch_token)

    @property
    def from_city_code(self) -> int:
        return self.config.from_city_code

    async def _fetch_token(self) -> tuple[str, float]:
        if not self.config.client_id or not self.config.client_secret:
            raise ShippingNotConfiguredError(
                "CDEK credentials are not configured: set CDEK__CLIENT_ID and CDEK__CLIENT_SECRET"
            )
        try:
            response = await self.post(
                "oauth/token",
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                },
                authenticated=False,
            )
            payload = response.json()
            token, expires_in = payload["access_token"], float(payload["expires_in"])
        except APIError as exc:
            logger.error("cdek_oauth_failed", error=str(exc))
            raise ShippingError(f"CDEK OAuth error: {exc.message}", details={"status_code": exc.status_code}) from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise ShippingError("CDEK OAuth returned an unexpected payload") from exc
        logger.info("cdek_token_refreshed", expires_in=expires_in)
        return token, expires_in

    async def _auth_headers(self) -> Dict[str, str]:
        token = await self.tokens.get_valid_token()
        return {"Authorization": f"Bearer {token}"}

    async def _get_json(self, endpoint: str, params: Dict[str, Any]) -> Any:
        try:
            try:
                response = await self.get(endpoint, params=params)
            except AuthenticationError as exc:
                if exc.status_code != 401:
                    raise
                # Token revoked before its expiry; refresh once and replay
                logger.warning("cdek_token_rejected", endpoint=endpoint)
                self.tokens.invalidate()
                response = await self.get(endpoint, params=params)
        except APIError as exc:
            logger.error("cdek_request_failed", endpoint=endpoint, status_code=exc.status_code, error=exc.message)
            raise ShippingError(f"CDEK GET {endpoint} failed: {exc.message}", details={"status_code": exc.status_code}) from exc
        return response.json()

    async def search_cities(self, name: str) -> list[CdekCity]:
        """Find cities by (partial) name, Russia only."""
        payload = await self._get_json("location/cities", {"city": name, "country_codes": "RU", "size": "10"})
        try:
            return [CdekCity.model_validate(item) for item in payload or []]
        except ValidationError as exc:
            raise ShippingError("CDEK returned malformed city data") from exc

    async def get_delivery_points(self, city_code: int) -> list[CdekDeliveryPoint]:
        payload = await self._get_json(
            "deliverypoints",
            {"city_code": str(city_code), "type": "PVZ", "is_handout": "true"},
        )
        try:
            return [CdekDeliveryPoint.model_validate(item) for item in payload or []]
        except ValidationError as exc:
            raise ShippingError("CDEK returned malformed delivery point data") from exc

    async def _calculate_tariff(self, tariff: tuple[int, str], body: Dict[str, Any]) -> CdekTariff:
        code, name = tariff
        response = await self.post("calculator/tariff", json_data={**body, "tariff_code": code})
        result = response.json()
        return CdekTariff(
            tariff_code=code,
            tariff_name=name,
            delivery_sum=result.get("total_sum") if result.get("total_sum") is not None else result["delivery_sum"],
            period_min=result["period_min"],
            period_max=result["period_max"],
        )

    async def calculate_delivery(
        self,
        to_city_code: int,
        packages: Optional[list[CdekPackage]] = None,
    ) -> list[CdekTariff]:
        """Quote warehouse-to-warehouse delivery; empty list when no tariff applies."""
        body = {
            "from_location": {"code": self.from_city_code},
            "to_location": {"code": to_city_code},
            "packages": [p.model_dump() for p in (packages or [CdekPackage()])],
        }
        for tariff in (PARCEL_TARIFF, ECONOMY_PARCEL_TARIFF):
            try:
                return [await self._calculate_tariff(tariff, body)]
            except (APIError, AttributeError, KeyError, TypeError, ValidationError) as exc:
                logger.warning("cdek_tariff_unavailable", tariff_code=tariff[0], to_city_code=to_city_code, error=str(exc))
        return []


_client: Optional[CdekClient] = None


def get_cdek_client() -> CdekClient:
    """Process-wide client so the token cache is shared."""
    global _client
    if _client is None:
        _client = CdekClient()
    return _client


async def shutdown_cdek_client() -> None:
    global _client
    if _client is not None:
        await _client.close()
        _client = None
