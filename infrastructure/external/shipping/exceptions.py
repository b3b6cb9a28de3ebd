"""
Exceptions for the shipping carrier mapped to unified BusinessException variants.
"""
from __future__ import annotations

from typing import Optional

from domain.common.exceptions import BusinessException
from shared.codes import BusinessCode


class ShippingError(BusinessException):
    def __init__(self, message: str, *, carrier: str = "cdek", details: Optional[dict] = None):
        full_details = {"carrier": carrier}
        if details:
            full_details.update(details)
        super().__init__(
            code=BusinessCode.SHIPPING_ERROR,
            message=message,
            error_type="ShippingError",
            details=full_details,
        )


class ShippingNotConfiguredError(BusinessException):
    def __init__(self, message: str, *, carrier: str = "cdek"):
        super().__init__(
            code=BusinessCode.SHIPPING_NOT_CONFIGURED,
            message=message,
            error_type="ShippingNotConfigured",
            details={"carrier": carrier},
        )
