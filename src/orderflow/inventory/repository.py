"""Repository for the Product aggregate with conditional stock updates."""

from protean.exceptions import ObjectNotFoundError

from orderflow.domain import orderflow
from orderflow.inventory.product import Product
from orderflow.utils.locking import record_lock


@orderflow.repository(part_of=Product)
class ProductRepository:
    """Stock changes are compare-and-swap: read, check and write happen as one step."""

    def find(self, product_id: str) -> Product | None:
        try:
            return self.get(product_id)
        except ObjectNotFoundError:
            return None

    def try_decrement(self, product_id: str, quantity: int) -> bool:
        """Subtract ``quantity`` only if that much stock is on hand."""
        with record_lock():
            product = self.find(product_id)
            if product is None or product.stock < quantity:
                return False
            product.withdraw(quantity)
            self.add(product)
            return True

    def restock(self, product_id: str, quantity: int) -> Product:
        with record_lock():
            product = self.get(product_id)
            product.replenish(quantity)
            self.add(product)
            return product
