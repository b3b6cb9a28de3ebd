import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_payment_provider_service
from api.routes.payments import _ip_allowed
from application.services.payment_service import PaymentProviderService
from core.settings import payment_settings
from infrastructure.external.payments.yookassa_client import YooKassaClient
from main import app
from shared.codes.payment_codes import PaymentCode


WEBHOOK_URL = "/api/v1/payments/yookassa/webhook"
PAYMENT_ID = "2c5d7f2a-000f-5000-9000-1b6d5c0e0e5b"


class ExplodingTranslator:
    def translate(self, payload):
        raise RuntimeError("boom")


@pytest.fixture
def use_service():
    def _install(service: PaymentProviderService):
        async def _override():
            yield service
        app.dependency_overrides[get_payment_provider_service] = _override
        return service
    yield _install
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def test_webhook_translates_event(client, use_service, fake_gateway, webhook_body):
    use_service(PaymentProviderService(fake_gateway))
    resp = client.post(WEBHOOK_URL, json=webhook_body("payment.succeeded"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == 0
    assert body["data"] == {"received": True, "action": "captured"}


def test_webhook_reports_rejection_reason(client, use_service, fake_gateway, webhook_body):
    use_service(PaymentProviderService(fake_gateway))
    resp = client.post(WEBHOOK_URL, json=webhook_body("refund.succeeded"))
    assert resp.status_code == 200
    assert resp.json()["data"] == {"received": True, "action": "not_supported", "reason": "informational_event"}


def test_webhook_invalid_json(client, use_service, fake_gateway):
    use_service(PaymentProviderService(fake_gateway))
    resp = client.post(WEBHOOK_URL, content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 200
    assert resp.json()["data"] == {"received": True, "error": "invalid_json"}


def test_webhook_empty_body(client, use_service, fake_gateway):
    use_service(PaymentProviderService(fake_gateway))
    resp = client.post(WEBHOOK_URL, content=b"")
    assert resp.status_code == 200
    assert resp.json()["data"]["reason"] == "invalid_payload"


def test_webhook_processing_error_still_200(client, use_service, fake_gateway, webhook_body):
    use_service(PaymentProviderService(fake_gateway, translator=ExplodingTranslator()))
    resp = client.post(WEBHOOK_URL, json=webhook_body())
    assert resp.status_code == 200
    assert resp.json()["data"] == {"received": True, "error": "processing_error"}


def test_webhook_ip_allowlist(client, use_service, fake_gateway, webhook_body, monkeypatch):
    monkeypatch.setattr(payment_settings.webhook, "ip_allowlist", ["185.71.76.0/27", "77.75.156.11"])
    use_service(PaymentProviderService(fake_gateway))
    resp = client.post(WEBHOOK_URL, json=webhook_body())
    assert resp.status_code == 200
    assert resp.json()["data"] == {"received": True, "error": "ip_not_allowed"}


def test_ip_allowed_matches_addresses_and_networks():
    allowlist = ["185.71.76.0/27", "77.75.156.11", "not-an-ip"]
    assert _ip_allowed("185.71.76.10", allowlist)
    assert _ip_allowed("77.75.156.11", allowlist)
    assert not _ip_allowed("8.8.8.8", allowlist)
    assert not _ip_allowed("testclient", allowlist)
    assert not _ip_allowed(None, allowlist)


def test_create_session(client, use_service, fake_gateway):
    use_service(PaymentProviderService(fake_gateway))
    resp = client.post("/api/v1/payments/sessions", json={"amount": 45000, "context": {"idempotency_key": "ord_9"}})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "pending"
    assert data["data"]["session_id"] == "ord_9"


def test_status_route(client, use_service, gateway_factory, payment_factory):
    use_service(PaymentProviderService(gateway_factory(payment_factory("succeeded"))))
    resp = client.get(f"/api/v1/payments/{PAYMENT_ID}/status")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "captured"


def test_authorize_route(client, use_service, gateway_factory, payment_factory):
    use_service(PaymentProviderService(gateway_factory(payment_factory("succeeded"))))
    resp = client.post(f"/api/v1/payments/{PAYMENT_ID}/authorize")
    assert resp.json()["data"]["status"] == "authorized"


def test_cancel_route_reports_error_in_data(client, use_service, gateway_factory, payment_factory):
    use_service(PaymentProviderService(gateway_factory(payment_factory("succeeded"))))
    resp = client.post(f"/api/v1/payments/{PAYMENT_ID}/cancel")
    assert resp.status_code == 200
    assert "refund" in resp.json()["data"]["data"]["error"]


def test_refund_rule_violation_maps_to_409(client, use_service, gateway_factory, payment_factory):
    use_service(PaymentProviderService(gateway_factory(payment_factory("pending"))))
    resp = client.post(f"/api/v1/payments/{PAYMENT_ID}/refunds", json={"amount": 10000})
    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == PaymentCode.BUSINESS_RULE_VIOLATION
    assert body["error"]["type"] == "BusinessRuleViolation"
    assert PAYMENT_ID in body["message"]


def test_refund_invalid_amount_maps_to_422(client, use_service, fake_gateway):
    use_service(PaymentProviderService(fake_gateway))
    resp = client.post(f"/api/v1/payments/{PAYMENT_ID}/refunds", json={"amount": 0})
    assert resp.status_code == 422
    assert resp.json()["code"] == PaymentCode.VALIDATION_ERROR


def test_refund_not_configured_maps_to_503(client, use_service):
    use_service(PaymentProviderService(YooKassaClient(shop_id="", secret_key="")))
    resp = client.post(f"/api/v1/payments/{PAYMENT_ID}/refunds", json={"amount": 10000})
    assert resp.status_code == 503
    assert resp.json()["code"] == PaymentCode.NOT_CONFIGURED


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "healthy"}


def test_initiate_out_of_range_amount_returns_error_result(client, use_service, fake_gateway):
    use_service(PaymentProviderService(fake_gateway))
    resp = client.post("/api/v1/payments/sessions", json={"amount": 1e30})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "error"
    assert "out of range" in data["data"]["error"]


def test_webhook_with_huge_amount_is_translated(client, use_service, fake_gateway, webhook_body):
    use_service(PaymentProviderService(fake_gateway))
    resp = client.post(WEBHOOK_URL, json=webhook_body("payment.succeeded", amount={"value": "1e30"}))
    assert resp.status_code == 200
    assert resp.json()["data"] == {"received": True, "action": "captured"}
