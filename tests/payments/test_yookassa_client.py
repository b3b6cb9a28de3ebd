import asyncio
import base64
import json

import httpx
import pytest

from application.dtos.payments import GatewayAmount
from core.settings import PaymentTimeouts
from domain.payment.exceptions import (
    GatewayError,
    GatewayForbiddenError,
    GatewayNetworkError,
    GatewayNotConfiguredError,
    GatewayRateLimitedError,
    GatewayServerUnavailableError,
    GatewayTimeoutError,
    GatewayUnauthorizedError,
)
from infrastructure.external.payments.yookassa_client import YooKassaClient


PAYMENT = {
    "id": "2c5d7f2a-000f-5000-9000-1b6d5c0e0e5b",
    "status": "pending",
    "amount": {"value": "450.00", "currency": "RUB"},
    "paid": False,
    "refundable": False,
    "confirmation": {"type": "redirect", "confirmation_url": "https://yoomoney.ru/checkout"},
    "metadata": {"session_id": "sess_01"},
    "created_at": "2024-05-01T10:00:00.000Z",
}


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client(handler, **kwargs) -> YooKassaClient:
    return YooKassaClient(
        shop_id=kwargs.get("shop_id", "123456"),
        secret_key=kwargs.get("secret_key", "test_secret"),
        api_url="https://api.yookassa.test/v3",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_create_payment_sends_auth_and_idempotence_key():
    rec = Recorder(httpx.Response(200, json=PAYMENT))
    client = _client(rec)
    body = {"amount": {"value": "450.00", "currency": "RUB"}, "capture": True}

    payment = await client.create_payment(body, idempotency_key="sess_01")
    await client.aclose()

    assert payment.id == PAYMENT["id"]
    assert payment.confirmation_url == "https://yoomoney.ru/checkout"
    request = rec.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v3/payments"
    assert request.headers["Idempotence-Key"] == "sess_01"
    expected = base64.b64encode(b"123456:test_secret").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert json.loads(request.content) == body


@pytest.mark.asyncio
async def test_post_without_key_gets_generated_key_and_get_has_none():
    rec = Recorder(httpx.Response(200, json=PAYMENT))
    client = _client(rec)

    await client.cancel_payment(PAYMENT["id"])
    await client.get_payment(PAYMENT["id"])

    cancel, get = rec.requests
    assert cancel.url.path.endswith("/cancel")
    assert len(cancel.headers["Idempotence-Key"]) == 36
    assert "Idempotence-Key" not in get.headers
    assert get.method == "GET"


@pytest.mark.asyncio
async def test_capture_and_refund_bodies():
    refund = {
        "id": "rf_1",
        "status": "succeeded",
        "amount": {"value": "100.00", "currency": "RUB"},
        "payment_id": PAYMENT["id"],
    }
    rec = Recorder(httpx.Response(200, json={**PAYMENT, "status": "succeeded"}), httpx.Response(200, json=refund))
    client = _client(rec)
    amount = GatewayAmount(value="100.00", currency="rub")

    captured = await client.capture_payment(PAYMENT["id"], amount, idempotency_key="k1")
    result = await client.create_refund(PAYMENT["id"], amount, idempotency_key="k2")

    assert captured.status == "succeeded"
    assert result.id == "rf_1"
    capture_req, refund_req = rec.requests
    assert json.loads(capture_req.content) == {"amount": {"value": "100.00", "currency": "RUB"}}
    assert refund_req.url.path == "/v3/refunds"
    assert json.loads(refund_req.content) == {
        "payment_id": PAYMENT["id"],
        "amount": {"value": "100.00", "currency": "RUB"},
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,error_cls,retryable",
    [
        (401, GatewayUnauthorizedError, False),
        (403, GatewayForbiddenError, False),
        (429, GatewayRateLimitedError, True),
        (500, GatewayServerUnavailableError, True),
        (503, GatewayServerUnavailableError, True),
    ],
)
async def test_http_errors_are_classified(status, error_cls, retryable):
    client = _client(Recorder(httpx.Response(status, text="nope")))
    with pytest.raises(error_cls) as exc_info:
        await client.get_payment("p1")
    assert exc_info.value.status_code == status
    assert exc_info.value.body == "nope"
    assert exc_info.value.retryable is retryable


@pytest.mark.asyncio
async def test_other_client_errors_are_generic_gateway_errors():
    client = _client(Recorder(httpx.Response(400, json={"type": "error", "code": "invalid_request"})))
    with pytest.raises(GatewayError) as exc_info:
        await client.create_payment({}, idempotency_key="k")
    assert type(exc_info.value) is GatewayError
    assert exc_info.value.status_code == 400
    assert "invalid_request" in exc_info.value.body


@pytest.mark.asyncio
@pytest.mark.parametrize("shop_id,secret_key", [("", "secret"), ("123", "")])
async def test_missing_credentials_fail_without_network(shop_id, secret_key):
    rec = Recorder(httpx.Response(200, json=PAYMENT))
    client = _client(rec, shop_id=shop_id, secret_key=secret_key)
    with pytest.raises(GatewayNotConfiguredError):
        await client.get_payment("p1")
    assert rec.requests == []


@pytest.mark.asyncio
async def test_timeout_is_classified():
    client = _client(Recorder(httpx.ReadTimeout("read timed out")))
    with pytest.raises(GatewayTimeoutError) as exc_info:
        await client.get_payment("p1")
    assert exc_info.value.retryable


@pytest.mark.asyncio
async def test_connection_error_is_classified():
    client = _client(Recorder(httpx.ConnectError("connection refused")))
    with pytest.raises(GatewayNetworkError):
        await client.get_payment("p1")


@pytest.mark.asyncio
async def test_malformed_json_response():
    client = _client(Recorder(httpx.Response(200, text="<html>")))
    with pytest.raises(GatewayError):
        await client.get_payment("p1")


@pytest.mark.asyncio
async def test_unexpected_payload_shape():
    client = _client(Recorder(httpx.Response(200, json={"id": "p1"})))
    with pytest.raises(GatewayError) as exc_info:
        await client.get_payment("p1")
    assert "GatewayPayment" in exc_info.value.message


@pytest.mark.asyncio
async def test_retry_reuses_idempotence_key():
    rec = Recorder(httpx.ConnectError("reset"), httpx.Response(200, json=PAYMENT))
    client = _client(rec)
    client._retry_cfg = {"max": 1, "base": 0.0}

    payment = await client.create_payment({"capture": True})

    assert payment.id == PAYMENT["id"]
    first, second = rec.requests
    assert first.headers["Idempotence-Key"] == second.headers["Idempotence-Key"]


@pytest.mark.asyncio
async def test_no_retry_by_default():
    rec = Recorder(httpx.ConnectError("reset"), httpx.Response(200, json=PAYMENT))
    client = _client(rec)
    with pytest.raises(GatewayNetworkError):
        await client.get_payment("p1")
    assert len(rec.requests) == 1


def test_default_hard_timeout_is_thirty_seconds():
    assert PaymentTimeouts().total == 30.0
    client = _client(Recorder(httpx.Response(200, json=PAYMENT)))
    assert client.total_timeout == 30.0


@pytest.mark.asyncio
async def test_hard_timeout_bounds_a_stalled_call():
    async def stalled(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json=PAYMENT)

    client = _client(stalled)
    client._timeouts_cfg = {**client._timeouts_cfg, "total": 0.05}

    with pytest.raises(GatewayTimeoutError) as exc_info:
        await client.get_payment("p1")
    assert "0.05s" in exc_info.value.message
