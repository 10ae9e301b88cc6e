"""Shipping rate calculation and delivery estimates."""

import random
from datetime import date, timedelta

from orderflow.errors import GatewayFailure
from orderflow.shipping.carriers import (
    DIM_DIVISOR,
    DOMESTIC_COUNTRY,
    FAR_ZONE_MULTIPLIER,
    INTERNATIONAL_MULTIPLIER,
    ORIGIN_STATE,
    OVERSIZE_SURCHARGE,
    OVERSIZE_THRESHOLD_IN,
    PER_LB_RATE,
    RATE_JITTER,
    CarrierService,
)

DESTINATION_FIELDS = ("country", "state", "city", "postal_code")


def _invalid(message: str) -> GatewayFailure:
    return GatewayFailure("invalid_shipping_request", message, "invalid_request_error")


def validate_package(package: dict | None) -> GatewayFailure | None:
    if not package:
        return _invalid("Package weight is required")
    weight = package.get("weight")
    if not weight:
        return _invalid("Package weight is required")
    if weight <= 0:
        return _invalid("Package weight must be greater than zero")
    dimensions = package.get("dimensions") or {}
    if not all(dimensions.get(side) and dimensions[side] > 0 for side in ("length", "width", "height")):
        return _invalid("Package dimensions (length, width, height) are required")
    return None


def validate_destination(destination: dict | None) -> GatewayFailure | None:
    for field in DESTINATION_FIELDS:
        if not (destination or {}).get(field):
            return _invalid(f"Destination {field} is required")
    return None


def billable_weight(package: dict) -> float:
    dims = package["dimensions"]
    volumetric = dims["length"] * dims["width"] * dims["height"] / DIM_DIVISOR
    return max(package["weight"], volumetric)


def base_rate(package: dict, destination: dict, service: CarrierService) -> float:
    """Deterministic part of a quote, before jitter."""
    rate = service.base_rate + max(0.0, billable_weight(package) - 1) * PER_LB_RATE

    if destination["country"].upper() != DOMESTIC_COUNTRY:
        rate *= INTERNATIONAL_MULTIPLIER
    elif destination["state"].upper() != ORIGIN_STATE:
        rate *= FAR_ZONE_MULTIPLIER

    dims = package["dimensions"]
    if max(dims["length"], dims["width"], dims["height"]) > OVERSIZE_THRESHOLD_IN:
        rate += OVERSIZE_SURCHARGE
    return rate


def jittered(rate: float, rng: random.Random) -> float:
    return round(rate * (1 + (rng.random() - 0.5) * RATE_JITTER), 2)


def add_business_days(start: date, days: int) -> date:
    """``days`` calendar days after ``start``, pushed past a weekend landing."""
    result = start + timedelta(days=days)
    while result.weekday() >= 5:
        result += timedelta(days=1)
    return result
