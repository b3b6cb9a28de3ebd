"""Storefront shipping routes (CDEK pickup points and delivery quotes)."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_shipping_client
from application.dtos.shipping import CdekCity, CdekDeliveryPoint, CdekTariff
from core.response import Response as ApiResponse, success_response
from infrastructure.external.shipping import CdekClient


router = APIRouter(
    prefix="/store/cdek",
    tags=["Shipping"],
)


def _parse_city_code(city_code: Optional[str]) -> int:
    try:
        return int((city_code or "").strip())
    except ValueError:
        raise HTTPException(status_code=400, detail="city_code is required and must be an integer")


@router.get(
    "/cities",
    summary="Search cities",
    response_model=ApiResponse[list[CdekCity]],
)
async def search_cities(
    name: Optional[str] = Query(default=None),
    client: CdekClient = Depends(get_shipping_client),
):
    name = (name or "").strip()
    if len(name) < 2:
        raise HTTPException(status_code=400, detail="name must be at least 2 characters")
    cities = await client.search_cities(name)
    return success_response(data=cities)


@router.get(
    "/pvz",
    summary="Pickup points in a city",
    response_model=ApiResponse[list[CdekDeliveryPoint]],
)
async def get_delivery_points(
    city_code: Optional[str] = Query(default=None),
    client: CdekClient = Depends(get_shipping_client),
):
    points = await client.get_delivery_points(_parse_city_code(city_code))
    return success_response(data=points)


@router.get(
    "/calculate",
    summary="Delivery quote to a city",
    response_model=ApiResponse[list[CdekTariff]],
)
async def calculate_delivery(
    city_code: Optional[str] = Query(default=None),
    client: CdekClient = Depends(get_shipping_client),
):
    tariffs = await client.calculate_delivery(_parse_city_code(city_code))
    return success_response(data=tariffs)
