"""Shipping simulator factory.

Provides get_shipping_simulator() / set_shipping_simulator() to swap the
active simulator, e.g. for one with a fixed clock and scripted randomness.
"""

from orderflow.shipping.simulator import ShippingSimulator

_current_simulator: ShippingSimulator | None = None


def get_shipping_simulator() -> ShippingSimulator:
    """Return the current shipping simulator, creating the default one on first use."""
    global _current_simulator
    if _current_simulator is None:
        _current_simulator = ShippingSimulator()
    return _current_simulator


def set_shipping_simulator(simulator: ShippingSimulator) -> None:
    """Override the active shipping simulator (useful for tests)."""
    global _current_simulator
    _current_simulator = simulator


def reset_shipping_simulator() -> None:
    """Reset to the default simulator."""
    global _current_simulator
    _current_simulator = None
