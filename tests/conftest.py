import os
import random
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Fetch and activate the domain by pushing the associated domain_context. The activated domain can then be referred to elsewhere as `current_domain`
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from orderflow.domain import orderflow

    orderflow.init()
    orderflow.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from orderflow.payment import reset_payment_simulator
    from orderflow.shipping import reset_shipping_simulator
    from protean import current_domain

    reset_payment_simulator()
    reset_shipping_simulator()

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()


# ---------------------------------------------------------------------------
# Deterministic simulator inputs
# ---------------------------------------------------------------------------
class ScriptedRandom(random.Random):
    """``random()`` returns scripted rolls in order, then 0.5 forever.

    At 0.5 every success roll passes, no label fails and rate jitter is zero.
    ``getrandbits`` (ids, ``choice``, ``randint``) stays seeded.
    """

    def __init__(self, rolls=(), seed=7):
        super().__init__(seed)
        self.rolls = list(rolls)

    def random(self):
        if self.rolls:
            return self.rolls.pop(0)
        return 0.5

    def getrandbits(self, k):
        return super().getrandbits(k)


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def rng():
    return ScriptedRandom()


@pytest.fixture()
def clock():
    # A Monday morning
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=UTC))


@pytest.fixture()
def payment_simulator(rng, clock):
    from orderflow.config import Settings
    from orderflow.payment.simulator import PaymentSimulator
    from orderflow.simulation import NoDelay

    return PaymentSimulator(rng=rng, delay=NoDelay(), clock=clock, settings=Settings())


@pytest.fixture()
def shipping_simulator(rng, clock):
    from orderflow.config import Settings
    from orderflow.shipping.simulator import ShippingSimulator
    from orderflow.simulation import NoDelay

    return ShippingSimulator(rng=rng, delay=NoDelay(), clock=clock, settings=Settings())


# ---------------------------------------------------------------------------
# Principals
# ---------------------------------------------------------------------------
@pytest.fixture()
def alice():
    from orderflow.access.guard import Principal

    return Principal(user_id="user-alice", email="alice@example.com")


@pytest.fixture()
def bob():
    from orderflow.access.guard import Principal

    return Principal(user_id="user-bob", email="bob@example.com")


@pytest.fixture()
def admin():
    from orderflow.access.guard import Principal, Role

    return Principal(user_id="user-admin", role=Role.ADMIN)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_product():
    """Persist a product and return it."""
    from orderflow.inventory.product import Product
    from protean import current_domain

    def _make(title="Widget", price=10.00, stock=10, is_active=True, product_id=None):
        product = Product.create(title=title, price=price, stock=stock, is_active=is_active, product_id=product_id)
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def shipping_address():
    return {
        "full_name": "Alice Example",
        "line1": "1 Market St",
        "city": "San Francisco",
        "state": "CA",
        "postal_code": "94105",
        "country": "US",
    }


@pytest.fixture()
def place_order(make_product, clock, shipping_address):
    """Check out a single-line cart for ``user_id`` and return the order."""
    from orderflow.cart.store import CartStore
    from orderflow.order.workflow import OrderWorkflow

    def _place(user_id="user-alice", price=50.00, quantity=2, stock=10):
        product = make_product(title="Desk Lamp", price=price, stock=stock)
        CartStore().add_item(user_id, str(product.id), quantity)
        return OrderWorkflow(clock=clock).checkout(user_id, shipping_address=shipping_address, payment_method="card")

    return _place


@pytest.fixture()
def card_method():
    return {
        "type": "card",
        "card": {"number": "4242424242424242", "exp_month": 12, "exp_year": 2030, "cvc": "123"},
        "billing_details": {"name": "Alice Example", "email": "alice@example.com"},
    }


@pytest.fixture()
def pay_order(payment_simulator, card_method):
    """Create and confirm a payment for the whole order; return the confirmation."""

    def _pay(order, requester=None):
        created = payment_simulator.create_intent(order.total_cents, metadata={"order_id": str(order.id)}, requester=requester)
        assert created.success, created.error
        confirmed = payment_simulator.confirm_intent(created.intent.id, card_method, "STRIPE", requester)
        assert confirmed.success, confirmed.error
        return confirmed

    return _pay
