"""
Shipping carrier DTOs (CDEK API v2 subset).
"""
from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class CdekCity(BaseModel):
    code: int
    city: str
    fias_guid: Optional[str] = None
    country_code: str
    region: Optional[str] = None
    sub_region: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class CdekLocation(BaseModel):
    city_code: Optional[int] = None
    city: Optional[str] = None
    address: Optional[str] = None
    address_full: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    model_config = ConfigDict(extra="allow")


class CdekDeliveryPoint(BaseModel):
    code: str
    name: Optional[str] = None
    location: CdekLocation = Field(default_factory=CdekLocation)
    work_time: Optional[str] = None
    type: Optional[str] = None
    have_cashless: bool = False
    have_cash: bool = False
    is_dressing_room: bool = False

    model_config = ConfigDict(extra="allow")


class CdekPackage(BaseModel):
    weight: int = 1000  # grams
    length: int = 30  # cm
    width: int = 20
    height: int = 10


class CdekTariff(BaseModel):
    tariff_code: int
    tariff_name: str
    delivery_mode: int = 2
    delivery_sum: float
    period_min: int
    period_max: int
