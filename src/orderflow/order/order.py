"""Order aggregate — the shared ledger the payment and shipping gateways write into.

An order is created once, from a cart snapshot, and never re-reads live
product data afterwards. Line items are fixed at checkout; the total is
derived from them and guarded by an invariant.

State Machine:
    pending → paid → shipped → completed
    pending, paid, shipped, completed → canceled
    shipped → paid only when the shipment is cancelled
    A label issued while pending ships the order once it is paid

Money:
    Line prices and the order total are currency units rounded to cents.
    Payment and refund amounts are integer cents, as charged by the processor.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from orderflow.domain import orderflow
from orderflow.order.events import (
    OrderPaid,
    OrderPlaced,
    OrderRefunded,
    OrderShipped,
    OrderStatusChanged,
)
from orderflow.utils.money import round_money, to_cents


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELED = "canceled"


class PaymentStatus(Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"


class PaymentAction(Enum):
    INTENT_CREATED = "intent_created"
    PAYMENT_CONFIRMED = "payment_confirmed"
    PAYMENT_FAILED = "payment_failed"
    REFUND_PROCESSED = "refund_processed"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELED},
    OrderStatus.SHIPPED: {OrderStatus.COMPLETED, OrderStatus.CANCELED},
    OrderStatus.COMPLETED: {OrderStatus.CANCELED},
    OrderStatus.CANCELED: set(),  # Terminal
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in _VALID_TRANSITIONS[current]


# Carrier statuses mirrored into shipping_info
_SHIPMENT_CANCELLED = "Cancelled"
_SHIPMENT_DELIVERED = "Delivered"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@orderflow.value_object(part_of="Order")
class Address:
    """A shipping or billing address captured at checkout."""

    full_name = String(max_length=255)
    line1 = String(required=True, max_length=255)
    line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(max_length=2, default="US")
    phone = String(max_length=30)


@orderflow.value_object(part_of="Order")
class PaymentInfo:
    """The single successful payment recorded against an order."""

    transaction_id = Identifier(required=True)
    processor = String(required=True, max_length=50)
    amount = Integer(required=True, min_value=0)
    fee = Integer(required=True)
    net_amount = Integer(required=True)
    currency = String(max_length=3, default="usd")
    paid_at = DateTime(required=True)


@orderflow.value_object(part_of="Order")
class ShippingInfo:
    """The active shipment reference. Its status is the carrier's, not the order's."""

    shipment_id = Identifier(required=True)
    tracking_number = String(required=True, max_length=50)
    carrier = String(required=True, max_length=20)
    service = String(required=True, max_length=50)
    cost = Float(required=True, min_value=0.0)
    status = String(required=True, max_length=30)
    label_url = String(max_length=255)
    estimated_delivery = DateTime()
    shipped_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@orderflow.entity(part_of="Order")
class OrderItem:
    """A snapshot line item: price and title as they were at checkout."""

    product_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    subtotal = Float(required=True, min_value=0.0)
    position = Integer(default=0)

    @invariant.post
    def subtotal_must_equal_price_times_quantity(self):
        # Field-level errors are reported on their own
        if self.unit_price is None or self.quantity is None or self.subtotal is None:
            return
        if round_money(self.unit_price * self.quantity) != round_money(self.subtotal):
            raise ValidationError({"subtotal": ["Subtotal must equal unit price times quantity"]})

    @classmethod
    def snapshot(cls, product_id, title, unit_price, quantity, position=0):
        return cls(
            product_id=product_id,
            title=title,
            unit_price=unit_price,
            quantity=quantity,
            subtotal=round_money(unit_price * quantity),
            position=position,
        )


@orderflow.entity(part_of="Order")
class OrderRefund:
    refund_id = Identifier(required=True)
    transaction_id = Identifier(required=True)
    amount = Integer(required=True, min_value=1)
    reason = String(max_length=255)
    created_at = DateTime(required=True)


@orderflow.entity(part_of="Order")
class PaymentHistoryEntry:
    """One step of the order's payment trail. Entries are never changed."""

    action = String(required=True, choices=PaymentAction)
    intent_id = Identifier()
    transaction_id = Identifier()
    refund_id = Identifier()
    amount = Integer()
    status = String(max_length=50)
    error_code = String(max_length=50)
    message = Text()
    sequence = Integer(default=0)
    created_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@orderflow.aggregate
class Order:
    user_id = Identifier(required=True)
    items = HasMany(OrderItem)
    total = Float(required=True, min_value=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.UNPAID.value)
    payment_method = String(max_length=50)
    payment_intent_id = Identifier()
    payment_info = ValueObject(PaymentInfo)
    refunds = HasMany(OrderRefund)
    payment_history = HasMany(PaymentHistoryEntry)
    shipping_info = ValueObject(ShippingInfo)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def total_must_equal_sum_of_subtotals(self):
        if self.total is None:
            return
        expected = round_money(sum(item.subtotal for item in self.items))
        if expected != round_money(self.total):
            raise ValidationError({"total": ["Order total must equal the sum of item subtotals"]})

    @invariant.post
    def refunds_cannot_exceed_paid_amount(self):
        if not self.refunds:
            return
        paid = self.payment_info.amount if self.payment_info else 0
        if sum(r.amount for r in self.refunds) > paid:
            raise ValidationError({"refunds": ["Refunded amount cannot exceed the paid amount"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        lines,
        shipping_address=None,
        billing_address=None,
        payment_method=None,
        placed_at=None,
    ):
        """Create a pending, unpaid order from snapshot lines.

        Args:
            lines: dicts with product_id, title, unit_price and quantity.
        """
        placed_at = placed_at or datetime.now(UTC)
        items = [
            OrderItem.snapshot(
                product_id=line["product_id"],
                title=line["title"],
                unit_price=line["unit_price"],
                quantity=line["quantity"],
                position=position,
            )
            for position, line in enumerate(lines)
        ]

        order = cls(
            user_id=user_id,
            items=items,
            total=round_money(sum(item.subtotal for item in items)),
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.UNPAID.value,
            payment_method=payment_method,
            shipping_address=Address(**shipping_address) if shipping_address else None,
            billing_address=Address(**billing_address) if billing_address else None,
            created_at=placed_at,
            updated_at=placed_at,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                item_count=len(items),
                total=order.total,
                placed_at=placed_at,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def lines(self) -> list[OrderItem]:
        return sorted(self.items, key=lambda item: item.position)

    @property
    def history(self) -> list[PaymentHistoryEntry]:
        return sorted(self.payment_history, key=lambda entry: entry.sequence)

    @property
    def total_cents(self) -> int:
        return to_cents(self.total)

    @property
    def refunded_total(self) -> int:
        return sum(r.amount for r in self.refunds)

    @property
    def refundable_balance(self) -> int:
        if self.payment_info is None:
            return 0
        return self.payment_info.amount - self.refunded_total

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        return can_transition(OrderStatus(self.status), new_status)

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if not can_transition(current, target):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

    def _move_to(self, target: OrderStatus, at) -> None:
        previous = self.status
        self.status = target.value
        self.updated_at = at
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                changed_at=at,
            )
        )

    def change_status(self, new_status: OrderStatus, at=None) -> None:
        """Administrative status change, restricted to legal transitions."""
        self._assert_can_transition(new_status)
        self._move_to(new_status, at or datetime.now(UTC))

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def _append_history(self, action: PaymentAction, at, **details) -> None:
        sequence = max((e.sequence for e in self.payment_history), default=-1) + 1
        self.add_payment_history(
            PaymentHistoryEntry(action=action.value, sequence=sequence, created_at=at, **details)
        )
        self.updated_at = at

    def record_intent(self, intent_id, amount, at) -> None:
        self.payment_intent_id = intent_id
        self._append_history(
            PaymentAction.INTENT_CREATED,
            at,
            intent_id=intent_id,
            amount=amount,
            status="requires_payment_method",
        )

    def record_payment_failure(self, intent_id, amount, error_code, message, at) -> None:
        self._append_history(
            PaymentAction.PAYMENT_FAILED,
            at,
            intent_id=intent_id,
            amount=amount,
            status="failed",
            error_code=error_code,
            message=message,
        )

    def mark_paid(self, intent_id, transaction_id, processor, amount, fee, currency, at) -> None:
        if self.is_paid:
            raise ValidationError({"payment_status": ["Order is already paid"]})
        self._assert_can_transition(OrderStatus.PAID)

        with atomic_change(self):
            self.payment_status = PaymentStatus.PAID.value
            self.payment_info = PaymentInfo(
                transaction_id=transaction_id,
                processor=processor,
                amount=amount,
                fee=fee,
                net_amount=amount - fee,
                currency=currency,
                paid_at=at,
            )
            self._append_history(
                PaymentAction.PAYMENT_CONFIRMED,
                at,
                intent_id=intent_id,
                transaction_id=transaction_id,
                amount=amount,
                status="succeeded",
            )
            self._move_to(OrderStatus.PAID, at)
            self._catch_up_with_shipment(at)

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                transaction_id=transaction_id,
                processor=processor,
                amount=amount,
                fee=fee,
                paid_at=at,
            )
        )

    def record_refund(self, refund_id, transaction_id, amount, reason, at) -> bool:
        """Append a refund; returns True when the payment is now fully refunded."""
        if not self.is_paid:
            raise ValidationError({"payment_status": ["Only paid orders can be refunded"]})
        if amount > self.refundable_balance:
            raise ValidationError({"amount": ["Refund amount exceeds the remaining balance"]})

        with atomic_change(self):
            self.add_refunds(
                OrderRefund(
                    refund_id=refund_id,
                    transaction_id=transaction_id,
                    amount=amount,
                    reason=reason,
                    created_at=at,
                )
            )
            self._append_history(
                PaymentAction.REFUND_PROCESSED,
                at,
                transaction_id=transaction_id,
                refund_id=refund_id,
                amount=amount,
                status="succeeded",
                message=reason,
            )
            fully_refunded = self.refundable_balance == 0
            if fully_refunded:
                self.payment_status = PaymentStatus.REFUNDED.value
                if self.can_transition_to(OrderStatus.CANCELED):
                    self._move_to(OrderStatus.CANCELED, at)

        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                refund_id=refund_id,
                amount=amount,
                refunded_total=self.refunded_total,
                fully_refunded=fully_refunded,
            )
        )
        return fully_refunded

    # -------------------------------------------------------------------
    # Shipment
    # -------------------------------------------------------------------
    def attach_shipment(
        self,
        shipment_id,
        tracking_number,
        carrier,
        service,
        cost,
        status,
        label_url,
        estimated_delivery,
        at,
    ) -> None:
        """Record a new shipment; a paid order becomes shipped."""
        self.shipping_info = ShippingInfo(
            shipment_id=shipment_id,
            tracking_number=tracking_number,
            carrier=carrier,
            service=service,
            cost=cost,
            status=status,
            label_url=label_url,
            estimated_delivery=estimated_delivery,
            shipped_at=at,
        )
        if OrderStatus(self.status) == OrderStatus.PAID:
            self._move_to(OrderStatus.SHIPPED, at)
        self.updated_at = at

        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                shipment_id=shipment_id,
                tracking_number=tracking_number,
                carrier=carrier,
            )
        )

    def _replace_shipping_status(self, status) -> None:
        info = self.shipping_info
        self.shipping_info = ShippingInfo(
            shipment_id=info.shipment_id,
            tracking_number=info.tracking_number,
            carrier=info.carrier,
            service=info.service,
            cost=info.cost,
            status=status,
            label_url=info.label_url,
            estimated_delivery=info.estimated_delivery,
            shipped_at=info.shipped_at,
        )

    def _catch_up_with_shipment(self, at) -> None:
        """A label issued before payment ships the order as soon as it is paid."""
        info = self.shipping_info
        if info is None or info.status == _SHIPMENT_CANCELLED:
            return
        self._move_to(OrderStatus.SHIPPED, at)
        if info.status == _SHIPMENT_DELIVERED:
            self._move_to(OrderStatus.COMPLETED, at)

    def sync_shipment_status(self, status, delivered: bool, at) -> None:
        """Mirror the carrier status; delivery completes a shipped order."""
        if self.shipping_info is None:
            return
        if self.shipping_info.status != status:
            self._replace_shipping_status(status)
            self.updated_at = at
        if delivered and OrderStatus(self.status) == OrderStatus.SHIPPED:
            self._move_to(OrderStatus.COMPLETED, at)

    def revert_shipment(self, cancelled_status, at) -> None:
        """Shipment cancelled before pickup: the one permitted shipped → paid regression."""
        if self.shipping_info is not None:
            self._replace_shipping_status(cancelled_status)
        if OrderStatus(self.status) == OrderStatus.SHIPPED:
            self._move_to(OrderStatus.PAID, at)
        self.updated_at = at
