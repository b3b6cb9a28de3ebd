"""
Base REST API client

Shared HTTP plumbing for outbound integrations:
- automatic retry on transport errors and 429/5xx
- status-code based error classes
- request/response debug logging (credentials stripped)
- pluggable per-request auth headers
- timeout control
"""
import asyncio
import json
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass
from enum import Enum
import httpx
import logging
from datetime import datetime

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

logger = logging.getLogger(__name__)


class HTTPMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


@dataclass
class APIResponse:
    """Wrapped API response"""
    status_code: int
    headers: Dict[str, str]
    data: Any
    raw_content: bytes
    elapsed_ms: float
    request_id: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400

    def json(self) -> Any:
        if self.data is not None:
            return self.data
        return json.loads(self.raw_content)

    def text(self) -> str:
        return self.raw_content.decode('utf-8', errors='replace')


class APIError(Exception):
    """Base API error"""
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[APIResponse] = None,
        request_id: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.response = response
        self.request_id = request_id
        super().__init__(self.message)

    def __str__(self):
        parts = [self.message]
        if self.status_code:
            parts.append(f"Status: {self.status_code}")
        if self.request_id:
            parts.append(f"Request ID: {self.request_id}")
        return " | ".join(parts)


class RateLimitError(APIError):
    pass


class AuthenticationError(APIError):
    pass


class NotFoundError(APIError):
    pass


class ServerError(APIError):
    pass


class RetryableAPIError(APIError):
    """Transient error that the retry loop may repeat"""

    def __init__(self, message: str, status_code: Optional[int], response: Optional['APIResponse'], retry_after: Optional[float] = None):
        super().__init__(message=message, status_code=status_code, response=response, request_id=response.request_id if response else None)
        self.retry_after = retry_after


RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


class BaseAPIClient:
    """
    Base REST API client

    Subclasses implement the concrete endpoints and may override
    ``_auth_headers`` to attach credentials per request.
    """

    user_agent = "trikotazhiya-backend/1.0"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        debug: bool = False
    ):
        """
        Args:
            base_url: API base URL
            timeout: per-request timeout in seconds
            max_retries: retries after the first attempt
            retry_delay: base backoff delay in seconds
            headers: default request headers
            transport: custom httpx transport (tests use MockTransport)
            debug: log requests and responses
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.debug = debug
        self._transport = transport

        self.default_headers = {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }
        if headers:
            self.default_headers.update(headers)

        self._client: Optional[httpx.AsyncClient] = None

    @property
    async def client(self) -> httpx.AsyncClient:
        """Lazily create the shared HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                follow_redirects=True
            )
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _auth_headers(self) -> Dict[str, str]:
        return {}

    def _build_url(self, endpoint: str) -> str:
        endpoint = endpoint.lstrip('/')
        return f"{self.base_url}/{endpoint}"

    def _log_request(self, method: str, url: str, **kwargs):
        if self.debug:
            logger.debug(
                f"API Request: {method} {url}",
                extra={
                    "method": method,
                    "url": url,
                    "params": kwargs.get("params"),
                    "json": kwargs.get("json"),
                }
            )

    def _log_response(self, response: APIResponse):
        if self.debug:
            logger.debug(
                f"API Response: {response.status_code}",
                extra={
                    "status_code": response.status_code,
                    "elapsed_ms": response.elapsed_ms,
                    "request_id": response.request_id,
                }
            )

    def _handle_error_response(self, status_code: int, response: APIResponse):
        error_map = {
            401: AuthenticationError,
            403: AuthenticationError,
            404: NotFoundError,
            429: RateLimitError,
        }
        error_class = error_map.get(status_code, ServerError if status_code >= 500 else APIError)

        error_message = f"API request failed with status {status_code}"
        if isinstance(response.data, dict):
            error_message = (
                response.data.get("message") or
                response.data.get("error") or
                response.data.get("detail") or
                error_message
            )
            # CDEK style: {"errors": [{"code": ..., "message": ...}]}
            errors = response.data.get("errors")
            if isinstance(errors, list) and errors and isinstance(errors[0], dict):
                error_message = errors[0].get("message") or error_message

        raise error_class(
            message=str(error_message),
            status_code=status_code,
            response=response,
            request_id=response.request_id
        )

    async def _request(
        self,
        method: Union[str, HTTPMethod],
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        authenticated: bool = True,
    ) -> APIResponse:
        """
        Send an HTTP request with retry.

        Raises:
            APIError: on any non-recoverable failure
        """
        if isinstance(method, HTTPMethod):
            method = method.value

        url = self._build_url(endpoint)

        self._log_request(method, url, params=params, json=json_data)

        async def _send_once() -> APIResponse:
            request_headers = {**self.default_headers}
            if authenticated:
                request_headers.update(await self._auth_headers())
            if headers:
                request_headers.update(headers)

            start_time = datetime.now()
            client = await self.client
            response = await client.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                data=data,
                headers=request_headers,
            )

            elapsed = (datetime.now() - start_time).total_seconds() * 1000

            content_type = response.headers.get("content-type", "")
            response_data = None

            if "application/json" in content_type:
                try:
                    response_data = response.json()
                except json.JSONDecodeError:
                    response_data = None

            api_response = APIResponse(
                status_code=response.status_code,
                headers=dict(response.headers),
                data=response_data,
                raw_content=response.content,
                elapsed_ms=elapsed,
                request_id=response.headers.get("x-request-id")
            )

            self._log_response(api_response)

            if api_response.is_error and api_response.status_code in RETRY_STATUS_CODES:
                retry_after: Optional[float] = None
                if api_response.status_code == 429:
                    retry_header = api_response.headers.get("retry-after")
                    try:
                        if retry_header:
                            retry_after = float(retry_header)
                    except (TypeError, ValueError):
                        retry_after = None
                    if retry_after:
                        await asyncio.sleep(retry_after)

                raise RetryableAPIError(
                    message=f"Transient API error with status {api_response.status_code}",
                    status_code=api_response.status_code,
                    response=api_response,
                    retry_after=retry_after,
                )

            if api_response.is_error:
                self._handle_error_response(api_response.status_code, api_response)

            return api_response

        retrying = AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(
                multiplier=self.retry_delay,
                min=self.retry_delay,
                max=self.retry_delay * 8
            ),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError, RetryableAPIError)),
            before_sleep=before_sleep_log(logger, logging.WARNING)
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await _send_once()
        except httpx.TimeoutException as exc:
            raise APIError(f"Request timeout after {self.timeout}s") from exc
        except httpx.NetworkError as exc:
            raise APIError(f"Network error: {exc}") from exc
        except RetryableAPIError as exc:
            if exc.response:
                self._handle_error_response(exc.status_code or exc.response.status_code, exc.response)
            raise APIError(exc.message) from exc

    async def get(self, endpoint: str, **kwargs) -> APIResponse:
        return await self._request(HTTPMethod.GET, endpoint, **kwargs)

    async def post(self, endpoint: str, **kwargs) -> APIResponse:
        return await self._request(HTTPMethod.POST, endpoint, **kwargs)
