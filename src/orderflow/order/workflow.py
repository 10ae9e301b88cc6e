"""Order workflow engine — checkout and the order lifecycle.

Checkout converts a user's cart into an order in two phases:

1. Validate every line against live product data before touching stock.
2. Decrement stock line by line. If any decrement is refused, every earlier
   decrement of this checkout is returned before the failure is reported,
   so a failed checkout leaves stock exactly as it found it.

The cart is read and cleared under the same record lock that guards cart
edits, so checkout behaves as a single read-and-clear step.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from orderflow.access.guard import Principal, ensure_admin, ensure_owner_or_admin
from orderflow.cart.cart import Cart
from orderflow.errors import EmptyCart, IllegalTransition, InsufficientStock, InvalidProduct, OrderNotFound
from orderflow.inventory.ledger import InventoryLedger
from orderflow.inventory.product import Product
from orderflow.order.order import Order, OrderStatus
from orderflow.simulation import Clock, utc_now
from orderflow.utils.locking import record_lock

logger = structlog.get_logger(__name__)


class OrderWorkflow:
    def __init__(self, ledger: InventoryLedger | None = None, clock: Clock = utc_now) -> None:
        self.ledger = ledger or InventoryLedger()
        self.clock = clock

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def checkout(
        self,
        user_id: str,
        shipping_address: dict | None = None,
        billing_address: dict | None = None,
        payment_method: str | None = None,
    ) -> Order:
        cart_repo = current_domain.repository_for(Cart)
        product_repo = current_domain.repository_for(Product)

        with record_lock():
            try:
                cart = cart_repo.get(user_id)
            except ObjectNotFoundError:
                cart = None
            if cart is None or not cart.items:
                raise EmptyCart("Cart is empty")

            # Phase 1: validate everything before any mutation
            lines = []
            for item in cart.lines:
                product = product_repo.find(item.product_id)
                if product is None or not product.is_active:
                    raise InvalidProduct(str(item.product_id))
                if not product.can_supply(item.quantity):
                    raise InsufficientStock(str(product.id), item.quantity, product.stock)
                lines.append(
                    {
                        "product_id": str(product.id),
                        "title": product.title,
                        "unit_price": product.price,
                        "quantity": item.quantity,
                    }
                )

            # Phase 2: decrement, compensating on partial failure
            decremented: list[tuple[str, int]] = []
            for line in lines:
                if not self.ledger.try_decrement(line["product_id"], line["quantity"]):
                    self._compensate(decremented)
                    raise InsufficientStock(
                        line["product_id"],
                        line["quantity"],
                        self.ledger.available(line["product_id"]),
                    )
                decremented.append((line["product_id"], line["quantity"]))

            try:
                order = Order.place(
                    user_id=user_id,
                    lines=lines,
                    shipping_address=shipping_address,
                    billing_address=billing_address,
                    payment_method=payment_method,
                    placed_at=self.clock(),
                )
                current_domain.repository_for(Order).add(order)
            except Exception:
                self._compensate(decremented)
                raise

            cart.clear()
            cart_repo.add(cart)

        logger.info("checkout_completed", order_id=str(order.id), user_id=user_id, total=order.total)
        return order

    def _compensate(self, decremented: list[tuple[str, int]]) -> None:
        for product_id, quantity in reversed(decremented):
            self.ledger.restore(product_id, quantity)
        if decremented:
            logger.warning("checkout_compensated", products=[product_id for product_id, _ in decremented])

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def load(self, order_id: str) -> Order:
        try:
            return current_domain.repository_for(Order).get(order_id)
        except ObjectNotFoundError as exc:
            raise OrderNotFound(f"Order {order_id} not found") from exc

    def get_order(self, order_id: str, requester: Principal) -> Order:
        order = self.load(order_id)
        ensure_owner_or_admin(requester, order.user_id)
        return order

    def list_orders(self, requester: Principal, status: OrderStatus | None = None) -> list[Order]:
        """All orders, newest first, optionally restricted to one status."""
        ensure_admin(requester)
        repo = current_domain.repository_for(Order)
        if status is not None:
            return repo.find_by_status(status.value)
        return repo.find_all()

    def list_my_orders(self, requester: Principal) -> list[Order]:
        return current_domain.repository_for(Order).find_by_user(requester.user_id)

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def update_status(self, order_id: str, new_status: OrderStatus, requester: Principal) -> Order:
        ensure_admin(requester)
        with record_lock():
            order = self.load(order_id)
            if not order.can_transition_to(new_status):
                raise IllegalTransition(f"Cannot transition order from {order.status} to {new_status.value}")
            order.change_status(new_status, at=self.clock())
            current_domain.repository_for(Order).add(order)

        logger.info("order_status_updated", order_id=order_id, status=new_status.value)
        return order

