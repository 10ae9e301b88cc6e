"""Payment simulator factory.

Provides get_payment_simulator() / set_payment_simulator() so the API and
tests share one configured simulator, and tests can swap in one driven by a
scripted random source.
"""

from orderflow.payment.simulator import PaymentSimulator

_current_simulator: PaymentSimulator | None = None


def get_payment_simulator() -> PaymentSimulator:
    """Return the current payment simulator, creating the default one on first use."""
    global _current_simulator
    if _current_simulator is None:
        _current_simulator = PaymentSimulator()
    return _current_simulator


def set_payment_simulator(simulator: PaymentSimulator) -> None:
    """Override the active payment simulator (useful for tests)."""
    global _current_simulator
    _current_simulator = simulator


def reset_payment_simulator() -> None:
    """Reset to the default simulator."""
    global _current_simulator
    _current_simulator = None
