"""Application tests for InventoryLedger — conditional decrement and restore.

Covers:
- Decrement succeeds only when stock covers the request
- A refused decrement changes nothing
- Restore returns units to stock
- Concurrent decrements never oversell
"""

import threading

from orderflow.domain import orderflow
from orderflow.inventory.ledger import InventoryLedger
from orderflow.inventory.product import Product
from protean import current_domain


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock


class TestTryDecrement:
    def test_decrement_within_stock(self, make_product):
        product = make_product(stock=10)
        assert InventoryLedger().try_decrement(str(product.id), 3) is True
        assert _stock(product.id) == 7

    def test_decrement_exact_stock(self, make_product):
        product = make_product(stock=4)
        assert InventoryLedger().try_decrement(str(product.id), 4) is True
        assert _stock(product.id) == 0

    def test_decrement_beyond_stock_is_refused(self, make_product):
        product = make_product(stock=2)
        assert InventoryLedger().try_decrement(str(product.id), 5) is False
        assert _stock(product.id) == 2

    def test_decrement_unknown_product_is_refused(self):
        assert InventoryLedger().try_decrement("missing", 1) is False


class TestRestore:
    def test_restore_adds_back(self, make_product):
        product = make_product(stock=10)
        ledger = InventoryLedger()
        ledger.try_decrement(str(product.id), 6)
        ledger.restore(str(product.id), 6)
        assert _stock(product.id) == 10

    def test_available(self, make_product):
        product = make_product(stock=8)
        assert InventoryLedger().available(str(product.id)) == 8
        assert InventoryLedger().available("missing") == 0


class TestConcurrentDecrements:
    def test_concurrent_decrements_never_oversell(self, make_product):
        product = make_product(stock=10)
        product_id = str(product.id)
        outcomes = []
        start = threading.Barrier(20)

        def worker():
            with orderflow.domain_context():
                start.wait()
                outcomes.append(InventoryLedger().try_decrement(product_id, 1))

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count(True) == 10
        assert outcomes.count(False) == 10
        assert _stock(product_id) == 0
