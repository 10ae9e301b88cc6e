"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from orderflow.domain import orderflow


@orderflow.event(part_of="Order")
class OrderPlaced:
    """A cart was checked out into a new order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    item_count = Integer(required=True)
    total = Float(required=True)
    placed_at = DateTime(required=True)


@orderflow.event(part_of="Order")
class OrderPaid:
    """A payment was confirmed against the order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    transaction_id = Identifier(required=True)
    processor = String(required=True)
    amount = Integer(required=True)
    fee = Integer(required=True)
    paid_at = DateTime(required=True)


@orderflow.event(part_of="Order")
class OrderRefunded:
    """Part or all of the order's payment was refunded."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    refund_id = Identifier(required=True)
    amount = Integer(required=True)
    refunded_total = Integer(required=True)
    fully_refunded = Boolean(default=False)


@orderflow.event(part_of="Order")
class OrderShipped:
    """A shipping label was issued for the order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    tracking_number = String(required=True)
    carrier = String(required=True)


@orderflow.event(part_of="Order")
class OrderStatusChanged:
    """The order moved between lifecycle states."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)
