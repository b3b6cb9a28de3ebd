"""
Payment specific codes.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Configuration / input (60xxx)
    NOT_CONFIGURED = 60000
    VALIDATION_ERROR = 60001
    BUSINESS_RULE_VIOLATION = 60002

    # Transport (61xxx)
    TIMEOUT = 61000
    NETWORK_ERROR = 61001

    # Gateway HTTP classification (62xxx)
    UNAUTHORIZED = 62001
    FORBIDDEN = 62003
    RATE_LIMITED = 62029
    SERVER_UNAVAILABLE = 62500
    GATEWAY_ERROR = 62999
