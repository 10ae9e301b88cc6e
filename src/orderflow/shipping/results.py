"""Results returned by the shipping simulator."""

from dataclasses import dataclass, field
from datetime import date, datetime

from orderflow.errors import GatewayFailure
from orderflow.shipping.shipment import Shipment


@dataclass(frozen=True)
class RateQuote:
    carrier: str
    carrier_name: str
    service: str
    service_name: str
    rate: float
    estimated_delivery_days: int
    estimated_delivery_date: date


@dataclass(frozen=True)
class RatesResult:
    success: bool
    rates: list[RateQuote] = field(default_factory=list)
    request_id: str | None = None
    error: GatewayFailure | None = None


@dataclass(frozen=True)
class LabelResult:
    success: bool
    shipment: Shipment | None = None
    error: GatewayFailure | None = None


@dataclass(frozen=True)
class TrackingEventView:
    status: str
    location: str | None
    timestamp: datetime


@dataclass(frozen=True)
class TrackingResult:
    success: bool
    tracking_number: str | None = None
    status: str | None = None
    events: list[TrackingEventView] = field(default_factory=list)
    estimated_delivery: datetime | None = None
    error: GatewayFailure | None = None


@dataclass(frozen=True)
class CancellationResult:
    success: bool
    shipment: Shipment | None = None
    refund: float = 0.0
    error: GatewayFailure | None = None
