import pytest
from fastapi.testclient import TestClient
from orderflow.api.app import create_app
from orderflow.api.auth import encode_token
from orderflow.payment import set_payment_simulator
from orderflow.shipping import set_shipping_simulator


@pytest.fixture()
def client(payment_simulator, shipping_simulator):
    set_payment_simulator(payment_simulator)
    set_shipping_simulator(shipping_simulator)
    return TestClient(create_app())


@pytest.fixture()
def auth():
    """Build an Authorization header for a principal."""

    def _headers(principal):
        return {"Authorization": f"Bearer {encode_token(principal)}"}

    return _headers
