"""Cart store — owner-scoped cart mutations.

Every mutation runs under the record lock shared with checkout, so an edit
can never interleave with checkout's read-and-clear of the same cart.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from orderflow.cart.cart import Cart
from orderflow.errors import CartItemNotFound, InvalidProduct, ProductNotFound
from orderflow.inventory.product import Product
from orderflow.utils.locking import record_lock

logger = structlog.get_logger(__name__)


class CartStore:
    @property
    def _repository(self):
        return current_domain.repository_for(Cart)

    def load(self, user_id: str) -> Cart:
        """The user's cart, or a fresh unsaved one."""
        try:
            return self._repository.get(user_id)
        except ObjectNotFoundError:
            return Cart.create(user_id)

    def add_item(self, user_id: str, product_id: str, quantity: int) -> Cart:
        try:
            product = current_domain.repository_for(Product).get(product_id)
        except ObjectNotFoundError as exc:
            raise ProductNotFound(f"Product {product_id} does not exist") from exc
        if not product.is_active:
            raise InvalidProduct(product_id)

        with record_lock():
            cart = self.load(user_id)
            cart.add_item(product_id, quantity)
            self._repository.add(cart)

        logger.debug("cart_item_added", user_id=user_id, product_id=product_id, quantity=quantity)
        return cart

    def set_quantity(self, user_id: str, product_id: str, quantity: int) -> Cart:
        with record_lock():
            cart = self.load(user_id)
            if cart.find_item(product_id) is None:
                raise CartItemNotFound(f"Product {product_id} is not in the cart")
            cart.set_quantity(product_id, quantity)
            self._repository.add(cart)
        return cart

    def remove_item(self, user_id: str, product_id: str) -> Cart:
        with record_lock():
            cart = self.load(user_id)
            cart.remove_item(product_id)
            self._repository.add(cart)
        return cart

    def clear(self, user_id: str) -> Cart:
        """Empty the cart. Clearing an empty cart is a no-op."""
        with record_lock():
            cart = self.load(user_id)
            if cart.items:
                cart.clear()
                self._repository.add(cart)
        return cart
