"""Simulated carriers, their services and the tracking progression model."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class CarrierService:
    carrier: str
    code: str
    name: str
    base_rate: float
    delivery_days: tuple[int, int]


@dataclass(frozen=True)
class Carrier:
    code: str
    name: str
    tracking_prefix: str
    services: dict[str, CarrierService]


def _carrier(code, name, prefix, services):
    return Carrier(
        code=code,
        name=name,
        tracking_prefix=prefix,
        services={s[0]: CarrierService(code, s[0], s[1], s[2], s[3]) for s in services},
    )


CARRIERS: dict[str, Carrier] = {
    "UPS": _carrier(
        "UPS",
        "UPS",
        "1Z",
        [
            ("ups-ground", "UPS Ground", 8.90, (3, 5)),
            ("ups-3day", "UPS 3-Day Select", 15.99, (3, 3)),
            ("ups-2day", "UPS 2nd Day Air", 22.99, (2, 2)),
            ("ups-next-day", "UPS Next Day Air", 35.99, (1, 1)),
        ],
    ),
    "FEDEX": _carrier(
        "FEDEX",
        "FedEx",
        "1234",
        [
            ("fedex-ground", "FedEx Ground", 9.49, (3, 5)),
            ("fedex-express", "FedEx Express Saver", 16.49, (3, 3)),
            ("fedex-2day", "FedEx 2Day", 23.49, (2, 2)),
            ("fedex-overnight", "FedEx Standard Overnight", 37.49, (1, 1)),
        ],
    ),
    "USPS": _carrier(
        "USPS",
        "USPS",
        "9400",
        [
            ("usps-ground", "USPS Ground Advantage", 6.99, (3, 7)),
            ("usps-priority", "USPS Priority Mail", 12.99, (1, 3)),
            ("usps-express", "USPS Priority Mail Express", 28.99, (1, 2)),
        ],
    ),
}


def find_service(carrier_code: str | None, service_code: str | None) -> CarrierService | None:
    carrier = CARRIERS.get((carrier_code or "").upper())
    if carrier is None:
        return None
    return carrier.services.get(service_code or "")


# ---------------------------------------------------------------------------
# Rate model
# ---------------------------------------------------------------------------
PER_LB_RATE = 2.50
DIM_DIVISOR = 166
DOMESTIC_COUNTRY = "US"
ORIGIN_STATE = "CA"
INTERNATIONAL_MULTIPLIER = 2.5
FAR_ZONE_MULTIPLIER = 1.2
OVERSIZE_THRESHOLD_IN = 48
OVERSIZE_SURCHARGE = 15.00
RATE_JITTER = 0.10  # total width of the symmetric band, i.e. ±5%


# ---------------------------------------------------------------------------
# Tracking
# ---------------------------------------------------------------------------
class TrackingStatus(Enum):
    LABEL_CREATED = "Label Created"
    PICKED_UP = "Picked Up"
    IN_TRANSIT = "In Transit"
    ARRIVED_AT_FACILITY = "Arrived at Facility"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


PROGRESSION: tuple[TrackingStatus, ...] = (
    TrackingStatus.LABEL_CREATED,
    TrackingStatus.PICKED_UP,
    TrackingStatus.IN_TRANSIT,
    TrackingStatus.ARRIVED_AT_FACILITY,
    TrackingStatus.OUT_FOR_DELIVERY,
    TrackingStatus.DELIVERED,
)

# Hours after label creation that must be exceeded to reach each stage
STAGE_THRESHOLDS_HOURS: tuple[tuple[float, int], ...] = (
    (2, 1),
    (6, 2),
    (24, 3),
    (48, 4),
    (72, 5),
)

# Each event is stamped this many hours after the previous stage
EVENT_SPACING_HOURS = 12

ORIGIN_LOCATION = "Origin Facility"
TRANSIT_LOCATIONS: tuple[str, ...] = (
    "Los Angeles, CA",
    "Phoenix, AZ",
    "Denver, CO",
    "Chicago, IL",
    "Atlanta, GA",
    "New York, NY",
)


def stage_for_elapsed(hours: float) -> int:
    """Index into PROGRESSION reached after ``hours`` since label creation."""
    stage = 0
    for threshold, index in STAGE_THRESHOLDS_HOURS:
        if hours > threshold:
            stage = index
    return stage
