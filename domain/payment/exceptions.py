"""
Payment bridge error taxonomy mapped to unified BusinessException variants.

Gateway/network failures are classified once, in the HTTP client, and the
class is preserved up through the provider layer so callers can decide
between retrying and failing fast (see ``retryable``).
"""
from __future__ import annotations

from typing import Optional

from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


class PaymentBridgeError(BusinessException):
    code_value: PaymentCode = PaymentCode.GATEWAY_ERROR
    retryable: bool = False

    def __init__(self, message: str, *, provider: str = "yookassa", details: Optional[dict] = None):
        full_details = {"provider": provider}
        if details:
            full_details.update(details)
        self.provider = provider
        super().__init__(
            code=self.code_value,
            message=message,
            error_type=type(self).__name__,
            details=full_details,
        )


class GatewayNotConfiguredError(PaymentBridgeError):
    code_value = PaymentCode.NOT_CONFIGURED


class GatewayTimeoutError(PaymentBridgeError):
    code_value = PaymentCode.TIMEOUT
    retryable = True


class GatewayNetworkError(PaymentBridgeError):
    code_value = PaymentCode.NETWORK_ERROR
    retryable = True


class GatewayError(PaymentBridgeError):
    """Non-2xx gateway answer; carries the raw status and body."""

    code_value = PaymentCode.GATEWAY_ERROR

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: str = "",
        provider: str = "yookassa",
        details: Optional[dict] = None,
    ):
        self.status_code = status_code
        self.body = body
        full_details = {"status_code": status_code, "body": body}
        if details:
            full_details.update(details)
        super().__init__(message, provider=provider, details=full_details)


class GatewayUnauthorizedError(GatewayError):
    code_value = PaymentCode.UNAUTHORIZED


class GatewayForbiddenError(GatewayError):
    code_value = PaymentCode.FORBIDDEN


class GatewayRateLimitedError(GatewayError):
    code_value = PaymentCode.RATE_LIMITED
    retryable = True


class GatewayServerUnavailableError(GatewayError):
    code_value = PaymentCode.SERVER_UNAVAILABLE
    retryable = True


class PaymentValidationError(PaymentBridgeError):
    code_value = PaymentCode.VALIDATION_ERROR


class BusinessRuleViolation(PaymentBridgeError):
    code_value = PaymentCode.BUSINESS_RULE_VIOLATION


def classify_status(status_code: int) -> type[GatewayError]:
    """Pick the error class for a non-2xx gateway status."""
    if status_code == 401:
        return GatewayUnauthorizedError
    if status_code == 403:
        return GatewayForbiddenError
    if status_code == 429:
        return GatewayRateLimitedError
    if status_code >= 500:
        return GatewayServerUnavailableError
    return GatewayError
