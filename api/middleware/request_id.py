"""
Request ID middleware

Generates or forwards a trace id and binds it to structlog contextvars.
"""
import uuid
from contextvars import ContextVar
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

import structlog


request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
client_ip_var: ContextVar[Optional[str]] = ContextVar("client_ip", default=None)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Request ID tracing

    1. Take X-Request-ID from the request or generate one
    2. Expose it via request.state and contextvars for logging
    3. Echo it back in the response headers
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.HEADER_NAME)
        if not request_id:
            request_id = str(uuid.uuid4())

        client_ip = resolve_client_ip(request)

        request.state.request_id = request_id
        request.state.client_ip = client_ip

        request_id_var.set(request_id)
        client_ip_var.set(client_ip)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            client_ip=client_ip,
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)
        response.headers[self.HEADER_NAME] = request_id
        return response


def resolve_client_ip(request: Request) -> str:
    """
    Client address, honouring reverse proxy headers

    X-Forwarded-For (first hop) wins over X-Real-IP, which wins over the
    socket peer address.
    """
    x_forwarded_for = request.headers.get("X-Forwarded-For")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()
    client_ip = request.headers.get("X-Real-IP")
    if client_ip:
        return client_ip.strip()
    return request.client.host if request.client else "unknown"


def get_request_id() -> Optional[str]:
    """Current request id, or None outside a request"""
    return request_id_var.get()


def get_client_ip() -> Optional[str]:
    return client_ip_var.get()
