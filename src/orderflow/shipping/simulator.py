"""Shipping simulator — rate shopping, labels, tracking and cancellation.

Tracking is driven by the clock: the stage a parcel has reached is a pure
function of the hours elapsed since its label was created. Each newly reached
stage is recorded once, with a location drawn the first time, so repeated
queries for the same instant return the same history.

Label creation decides everything that can fail (selection, order state,
destination, the simulated carrier outage) before writing anything, so a
failed call leaves neither a shipment nor a changed order behind.
"""

import random
from datetime import datetime, time

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from orderflow.access.guard import Principal, ensure_owner_or_admin
from orderflow.config import Settings, get_settings
from orderflow.errors import (
    AlreadyInTransit,
    ConflictError,
    GatewayFailure,
    IllegalTransition,
    InvalidRequest,
    OrderflowError,
    OrderNotFound,
    ShipmentExists,
    ShipmentNotFound,
)
from orderflow.order.order import Order, OrderStatus
from orderflow.shipping.carriers import CARRIERS, TRANSIT_LOCATIONS, TrackingStatus, find_service, stage_for_elapsed
from orderflow.shipping.rates import (
    add_business_days,
    base_rate,
    jittered,
    validate_destination,
    validate_package,
)
from orderflow.shipping.results import (
    CancellationResult,
    LabelResult,
    RateQuote,
    RatesResult,
    TrackingEventView,
    TrackingResult,
)
from orderflow.shipping.shipment import Shipment
from orderflow.simulation import Clock, DelayStrategy, default_delay, default_rng, utc_now
from orderflow.utils.locking import record_lock
from orderflow.utils.money import round_money

logger = structlog.get_logger(__name__)

CARRIER_UNAVAILABLE = GatewayFailure("carrier_unavailable", "Carrier API temporarily unavailable", "api_error")
LABEL_URL = "https://shippinglabels.example.com/{shipment_id}.pdf"

# Orders in these states can no longer receive a label
_UNSHIPPABLE = {OrderStatus.CANCELED, OrderStatus.COMPLETED}


def _as_failure(exc: OrderflowError) -> GatewayFailure:
    return GatewayFailure(exc.code, exc.message, "invalid_request_error")


def address_as_destination(address) -> dict:
    return {
        "full_name": address.full_name,
        "line1": address.line1,
        "city": address.city,
        "state": address.state,
        "postal_code": address.postal_code,
        "country": address.country or "US",
    }


class ShippingSimulator:
    def __init__(
        self,
        rng: random.Random | None = None,
        delay: DelayStrategy | None = None,
        clock: Clock = utc_now,
        settings: Settings | None = None,
    ) -> None:
        self.rng = rng or default_rng()
        self.delay = delay or default_delay()
        self.clock = clock
        self.settings = settings or get_settings()

    # -------------------------------------------------------------------
    # Rates
    # -------------------------------------------------------------------
    def calculate_rates(self, package: dict, destination: dict) -> RatesResult:
        """Quote every carrier service for the package, cheapest first."""
        self.delay.wait(500, 1500, self.rng)

        failure = validate_package(package) or validate_destination(destination)
        if failure is not None:
            return RatesResult(success=False, error=failure)

        today = self.clock().date()
        quotes = []
        for carrier in CARRIERS.values():
            for service in carrier.services.values():
                days = self.rng.randint(*service.delivery_days)
                quotes.append(
                    RateQuote(
                        carrier=carrier.code,
                        carrier_name=carrier.name,
                        service=service.code,
                        service_name=service.name,
                        rate=jittered(base_rate(package, destination, service), self.rng),
                        estimated_delivery_days=days,
                        estimated_delivery_date=add_business_days(today, days),
                    )
                )

        quotes.sort(key=lambda q: q.rate)
        return RatesResult(success=True, rates=quotes, request_id=f"REQ_{self.rng.getrandbits(48):012X}")

    # -------------------------------------------------------------------
    # Labels
    # -------------------------------------------------------------------
    def create_label(
        self,
        order_id: str,
        selected_rate: dict,
        destination: dict | None = None,
        requester: Principal | None = None,
    ) -> LabelResult:
        self.delay.wait(1000, 2000, self.rng)
        try:
            with record_lock():
                return self._create_label(order_id, selected_rate or {}, destination, requester)
        except OrderflowError as exc:
            return LabelResult(success=False, error=_as_failure(exc))

    def _create_label(self, order_id, selected_rate, destination, requester) -> LabelResult:
        service = find_service(selected_rate.get("carrier"), selected_rate.get("service"))
        if service is None:
            raise InvalidRequest("Invalid shipping rate selection", code="invalid_rate_selection")
        cost = selected_rate.get("rate")
        if cost is None or cost <= 0:
            raise InvalidRequest("Selected rate must include a positive amount", code="invalid_rate_selection")

        order = self._load_order(order_id)
        if requester is not None:
            ensure_owner_or_admin(requester, order.user_id)
        if OrderStatus(order.status) in _UNSHIPPABLE:
            raise IllegalTransition(f"Order {order.id} is {order.status} and cannot be shipped")
        if current_domain.repository_for(Shipment).find_active_for_order(str(order.id)) is not None:
            raise ShipmentExists(f"Order {order.id} already has an active shipment")

        if destination is None and order.shipping_address is not None:
            destination = address_as_destination(order.shipping_address)
        failure = validate_destination(destination)
        if failure is not None:
            return LabelResult(success=False, error=failure)

        if self.rng.random() < self.settings.label_failure_rate:
            logger.warning("label_creation_failed", order_id=order_id, carrier=service.carrier)
            return LabelResult(success=False, error=CARRIER_UNAVAILABLE)

        now = self.clock()
        carrier = CARRIERS[service.carrier]
        shipment_id = f"SHIP_{self.rng.getrandbits(64):016X}"
        tracking_number = f"{carrier.tracking_prefix}{self.rng.getrandbits(64):016X}"
        delivery_date = add_business_days(now.date(), self.rng.randint(*service.delivery_days))
        estimated_delivery = datetime.combine(delivery_date, time.min, tzinfo=now.tzinfo)
        label_url = LABEL_URL.format(shipment_id=shipment_id)

        shipment = Shipment.issue(
            shipment_id=shipment_id,
            order_id=str(order.id),
            user_id=str(order.user_id),
            tracking_number=tracking_number,
            service=service,
            carrier_name=carrier.name,
            cost=round_money(cost),
            label_url=label_url,
            destination=destination,
            estimated_delivery=estimated_delivery,
            created_at=now,
        )
        order.attach_shipment(
            shipment_id=shipment_id,
            tracking_number=tracking_number,
            carrier=service.carrier,
            service=service.code,
            cost=shipment.cost,
            status=shipment.status,
            label_url=label_url,
            estimated_delivery=estimated_delivery,
            at=now,
        )
        current_domain.repository_for(Shipment).add(shipment)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "label_created",
            order_id=str(order.id),
            shipment_id=shipment_id,
            tracking_number=tracking_number,
            carrier=service.carrier,
        )
        return LabelResult(success=True, shipment=shipment)

    # -------------------------------------------------------------------
    # Tracking
    # -------------------------------------------------------------------
    def track(self, tracking_number: str) -> TrackingResult:
        self.delay.wait(300, 800, self.rng)
        with record_lock():
            shipment = current_domain.repository_for(Shipment).find_by_tracking_number(tracking_number)
            if shipment is None:
                return TrackingResult(
                    success=False,
                    tracking_number=tracking_number,
                    error=GatewayFailure(ShipmentNotFound.code, "Tracking number not found", "invalid_request_error"),
                )
            self._refresh(shipment)

        return TrackingResult(
            success=True,
            tracking_number=tracking_number,
            status=shipment.status,
            events=[TrackingEventView(e.status, e.location, e.occurred_at) for e in shipment.history],
            estimated_delivery=shipment.estimated_delivery,
        )

    def _refresh(self, shipment: Shipment) -> None:
        """Record stages reached since the last look and mirror them onto the order."""
        if shipment.is_cancelled:
            return
        elapsed_hours = (self.clock() - shipment.created_at).total_seconds() / 3600
        added = shipment.advance_to(stage_for_elapsed(elapsed_hours), lambda: self.rng.choice(TRANSIT_LOCATIONS))
        if not added:
            return

        current_domain.repository_for(Shipment).add(shipment)
        try:
            order = current_domain.repository_for(Order).get(shipment.order_id)
        except ObjectNotFoundError:
            logger.warning("shipment_order_missing", shipment_id=str(shipment.id), order_id=shipment.order_id)
            return
        if order.shipping_info is None or order.shipping_info.shipment_id != str(shipment.id):
            return
        order.sync_shipment_status(
            shipment.status,
            delivered=shipment.status == TrackingStatus.DELIVERED.value,
            at=self.clock(),
        )
        current_domain.repository_for(Order).add(order)
        logger.info("shipment_progressed", shipment_id=str(shipment.id), status=shipment.status)

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel_shipment(self, shipment_id: str, requester: Principal | None = None) -> CancellationResult:
        """Cancel before pickup; refunds part of the shipping cost."""
        self.delay.wait(500, 1000, self.rng)
        try:
            with record_lock():
                return self._cancel(shipment_id, requester)
        except OrderflowError as exc:
            return CancellationResult(success=False, error=_as_failure(exc))

    def _cancel(self, shipment_id, requester) -> CancellationResult:
        shipment = self._load_shipment(shipment_id)
        if requester is not None:
            ensure_owner_or_admin(requester, shipment.user_id)
        if shipment.is_cancelled:
            raise ConflictError("Shipment is already cancelled", code="already_cancelled")

        self._refresh(shipment)
        if shipment.status != TrackingStatus.LABEL_CREATED.value:
            raise AlreadyInTransit("Cannot cancel shipment that has already been picked up")

        now = self.clock()
        shipment.cancel(now)
        current_domain.repository_for(Shipment).add(shipment)

        order = self._load_order(shipment.order_id)
        order.revert_shipment(TrackingStatus.CANCELLED.value, now)
        current_domain.repository_for(Order).add(order)

        refund = round_money(shipment.cost * self.settings.shipping_refund_ratio)
        logger.info("shipment_cancelled", shipment_id=shipment_id, order_id=shipment.order_id, refund=refund)
        return CancellationResult(success=True, shipment=shipment, refund=refund)

    # -------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------
    def shipment_summary(self, order_id: str, requester: Principal) -> dict:
        """The order's shipping info plus current tracking, if it has a shipment."""
        order = self._load_order(order_id)
        ensure_owner_or_admin(requester, order.user_id)
        if order.shipping_info is None:
            return {"order_id": str(order.id), "shipping_info": None, "tracking": None}

        tracking = self.track(order.shipping_info.tracking_number)
        order = self._load_order(order_id)
        return {"order_id": str(order.id), "shipping_info": order.shipping_info, "tracking": tracking}

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _load_order(self, order_id) -> Order:
        try:
            return current_domain.repository_for(Order).get(order_id)
        except ObjectNotFoundError as exc:
            raise OrderNotFound(f"Order {order_id} not found") from exc

    def _load_shipment(self, shipment_id) -> Shipment:
        try:
            return current_domain.repository_for(Shipment).get(shipment_id)
        except ObjectNotFoundError as exc:
            raise ShipmentNotFound(f"Shipment {shipment_id} not found") from exc
