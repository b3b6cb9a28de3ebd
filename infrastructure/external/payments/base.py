"""
Base payment client implementing shared concerns: http, timeout, retry,
failure classification and logging.

Concrete providers subclass and supply authentication and endpoints.
"""
from __future__ import annotations

import asyncio
import uuid
from typing import Any, Callable, Optional
from contextlib import asynccontextmanager

import httpx
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from core.logging_config import get_logger
from domain.payment.exceptions import (
    GatewayError,
    GatewayNetworkError,
    GatewayTimeoutError,
    classify_status,
)


logger = get_logger(__name__)


class BasePaymentClient:
    provider: str = "base"
    idempotency_header: str = "Idempotency-Key"

    def __init__(
        self,
        *,
        base_url: str,
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeouts_cfg = timeouts or {"connect": 10.0, "read": 30.0, "write": 30.0, "total": 30.0}
        self._retry_cfg = retry or {"max": 0, "base": 0.5}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def timeouts(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self._timeouts_cfg["connect"],
            read=self._timeouts_cfg["read"],
            write=self._timeouts_cfg["write"],
            timeout=self._timeouts_cfg["total"],
        )

    @property
    def total_timeout(self) -> float:
        return float(self._timeouts_cfg["total"])

    @asynccontextmanager
    async def client(self):
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeouts,
                transport=self._transport,
            )
        try:
            yield self._client
        finally:
            # Keep open for reuse; explicit aclose() will close.
            ...

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def _retry(self, fn: Callable[[], Any]):
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(int(self._retry_cfg["max"]) + 1),
            wait=wait_exponential(multiplier=self._retry_cfg["base"], min=0.1, max=5.0),
            retry=retry_if_exception_type((GatewayTimeoutError, GatewayNetworkError)),
            reraise=True,
        ):
            with attempt:
                return await fn()

    def _ensure_configured(self) -> None:
        """Fail fast before any network activity when credentials are missing."""

    def _auth_headers(self) -> dict[str, str]:
        raise NotImplementedError

    def _describe_status(self, status_code: int) -> str:
        return f"{self.provider}: request failed with status {status_code}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Any:
        self._ensure_configured()

        headers = {
            **self._auth_headers(),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        # Generated once per logical call so a retried POST reuses the same key
        if method.upper() == "POST":
            headers[self.idempotency_header] = idempotency_key or str(uuid.uuid4())

        async def _send_once() -> Any:
            async with self.client() as http:
                try:
                    response = await asyncio.wait_for(
                        http.request(method, path, json=json, headers=headers),
                        timeout=self.total_timeout,
                    )
                except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
                    self._log_error("gateway_timeout", method=method, path=path, timeout=self.total_timeout)
                    raise GatewayTimeoutError(
                        f"{self.provider}: request timed out after {self.total_timeout:g}s",
                        provider=self.provider,
                        details={"method": method, "path": path},
                    ) from exc
                except httpx.RequestError as exc:
                    self._log_error("gateway_network_error", method=method, path=path, error=str(exc))
                    raise GatewayNetworkError(
                        f"{self.provider}: network error, gateway unreachable",
                        provider=self.provider,
                        details={"method": method, "path": path, "error": str(exc)},
                    ) from exc

            if not response.is_success:
                body = response.text
                self._log_error(
                    "gateway_http_error",
                    method=method,
                    path=path,
                    status_code=response.status_code,
                    body=body,
                )
                error_cls = classify_status(response.status_code)
                raise error_cls(
                    self._describe_status(response.status_code),
                    status_code=response.status_code,
                    body=body,
                    provider=self.provider,
                    details={"method": method, "path": path},
                )

            try:
                return response.json()
            except ValueError as exc:
                raise GatewayError(
                    f"{self.provider}: malformed JSON response",
                    status_code=response.status_code,
                    body=response.text,
                    provider=self.provider,
                ) from exc

        return await self._retry(_send_once)

    # Helpers
    def _log(self, event: str, **kwargs) -> None:
        logger.info(
            event,
            provider=self.provider,
            **kwargs,
        )

    def _log_error(self, event: str, **kwargs) -> None:
        logger.error(
            event,
            provider=self.provider,
            **kwargs,
        )
