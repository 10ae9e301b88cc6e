"""Inventory ledger — atomic check-and-decrement of product stock."""

import structlog
from protean.utils.globals import current_domain

from orderflow.inventory.product import Product

logger = structlog.get_logger(__name__)


class InventoryLedger:
    """Stock operations used by checkout and its compensation path."""

    @property
    def _repository(self):
        return current_domain.repository_for(Product)

    def try_decrement(self, product_id: str, quantity: int) -> bool:
        """Return True and subtract ``quantity`` when stock suffices, else change nothing."""
        decremented = self._repository.try_decrement(product_id, quantity)
        if not decremented:
            logger.info("stock_decrement_refused", product_id=product_id, quantity=quantity)
        return decremented

    def restore(self, product_id: str, quantity: int) -> None:
        """Return previously decremented units to stock."""
        product = self._repository.restock(product_id, quantity)
        logger.info("stock_restored", product_id=product_id, quantity=quantity, stock=product.stock)

    def available(self, product_id: str) -> int:
        product = self._repository.find(product_id)
        return product.stock if product is not None else 0
