"""Shipment aggregate — one carrier label and its tracking history.

Status only moves forward through the carrier progression. The one exit is
Cancelled, reachable only while the label has not been picked up.
"""

from datetime import timedelta

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from orderflow.domain import orderflow
from orderflow.shipping.carriers import EVENT_SPACING_HOURS, ORIGIN_LOCATION, PROGRESSION, TrackingStatus


@orderflow.entity(part_of="Shipment")
class TrackingEvent:
    status = String(required=True, choices=TrackingStatus)
    location = String(max_length=100)
    sequence = Integer(required=True, min_value=0)
    occurred_at = DateTime(required=True)


@orderflow.aggregate
class Shipment:
    order_id = Identifier(required=True)
    user_id = Identifier()
    tracking_number = String(required=True, max_length=50)
    carrier = String(required=True, max_length=20)
    carrier_name = String(max_length=50)
    service = String(required=True, max_length=50)
    service_name = String(max_length=100)
    cost = Float(required=True, min_value=0.0)
    status = String(choices=TrackingStatus, default=TrackingStatus.LABEL_CREATED.value)
    label_url = String(max_length=255)
    destination_city = String(max_length=100)
    destination_state = String(max_length=100)
    destination_postal_code = String(max_length=20)
    destination_country = String(max_length=2)
    estimated_delivery = DateTime()
    tracking_events = HasMany(TrackingEvent)
    created_at = DateTime(required=True)
    cancelled_at = DateTime()

    @classmethod
    def issue(
        cls,
        shipment_id,
        order_id,
        user_id,
        tracking_number,
        service,
        carrier_name,
        cost,
        label_url,
        destination,
        estimated_delivery,
        created_at,
    ):
        shipment = cls(
            id=shipment_id,
            order_id=order_id,
            user_id=user_id,
            tracking_number=tracking_number,
            carrier=service.carrier,
            carrier_name=carrier_name,
            service=service.code,
            service_name=service.name,
            cost=cost,
            status=TrackingStatus.LABEL_CREATED.value,
            label_url=label_url,
            destination_city=destination.get("city"),
            destination_state=destination.get("state"),
            destination_postal_code=destination.get("postal_code"),
            destination_country=destination.get("country"),
            estimated_delivery=estimated_delivery,
            created_at=created_at,
        )
        shipment.add_tracking_events(
            TrackingEvent(
                status=TrackingStatus.LABEL_CREATED.value,
                location=ORIGIN_LOCATION,
                sequence=0,
                occurred_at=created_at,
            )
        )
        return shipment

    @property
    def history(self) -> list[TrackingEvent]:
        return sorted(self.tracking_events, key=lambda e: e.sequence)

    @property
    def is_cancelled(self) -> bool:
        return self.status == TrackingStatus.CANCELLED.value

    @property
    def stage(self) -> int:
        """Index of the furthest progression stage recorded."""
        return max((e.sequence for e in self.tracking_events), default=0)

    def advance_to(self, target_stage: int, pick_location) -> list[TrackingEvent]:
        """Record every stage up to ``target_stage`` not yet recorded.

        Stages already recorded are left untouched, so calling this again
        for the same stage adds nothing.
        """
        if self.is_cancelled:
            return []

        added = []
        for stage in range(self.stage + 1, target_stage + 1):
            event = TrackingEvent(
                status=PROGRESSION[stage].value,
                location=pick_location(),
                sequence=stage,
                occurred_at=self.created_at + timedelta(hours=stage * EVENT_SPACING_HOURS),
            )
            self.add_tracking_events(event)
            added.append(event)

        if added:
            self.status = added[-1].status
        return added

    def cancel(self, at):
        if self.status != TrackingStatus.LABEL_CREATED.value:
            raise ValidationError({"status": [f"Cannot cancel a shipment that is {self.status}"]})
        self.status = TrackingStatus.CANCELLED.value
        self.cancelled_at = at
