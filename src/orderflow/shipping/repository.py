"""Repository for the Shipment aggregate."""

from orderflow.domain import orderflow
from orderflow.shipping.carriers import TrackingStatus
from orderflow.shipping.shipment import Shipment


@orderflow.repository(part_of=Shipment)
class ShipmentRepository:
    def find_by_tracking_number(self, tracking_number: str) -> Shipment | None:
        return self._dao.query.filter(tracking_number=tracking_number).all().first

    def find_active_for_order(self, order_id: str) -> Shipment | None:
        shipments = self._dao.query.filter(order_id=order_id).all().items
        return next((s for s in shipments if s.status != TrackingStatus.CANCELLED.value), None)
