"""Simulated payment processors and the error catalog they draw from."""

import math
from dataclasses import dataclass

from orderflow.errors import GatewayFailure


@dataclass(frozen=True)
class Processor:
    """Fee and reliability model of one simulated processor.

    ``fee_rate`` applies to the amount in cents; ``fixed_fee`` is in cents.
    """

    key: str
    name: str
    fee_rate: float
    fixed_fee: int
    success_rate: float
    latency_ms: tuple[int, int]

    def processing_fee(self, amount: int) -> int:
        # Half a cent rounds up
        return math.floor(amount * self.fee_rate + self.fixed_fee + 0.5)


PROCESSORS: dict[str, Processor] = {
    "STRIPE": Processor("STRIPE", "Stripe", 0.029, 30, 0.95, (1000, 3000)),
    "PAYPAL": Processor("PAYPAL", "PayPal", 0.0349, 49, 0.93, (1500, 4500)),
    "APPLE_PAY": Processor("APPLE_PAY", "Apple Pay", 0.029, 30, 0.97, (750, 2250)),
    "GOOGLE_PAY": Processor("GOOGLE_PAY", "Google Pay", 0.029, 30, 0.96, (900, 2700)),
}

DEFAULT_PROCESSOR = "STRIPE"


def get_processor(key: str | None) -> Processor | None:
    return PROCESSORS.get((key or DEFAULT_PROCESSOR).upper())


# ---------------------------------------------------------------------------
# Simulated errors
# ---------------------------------------------------------------------------
CARD_DECLINED = GatewayFailure("card_declined", "Your card was declined.", "card_error")
INSUFFICIENT_FUNDS = GatewayFailure("insufficient_funds", "Your card has insufficient funds.", "card_error")
EXPIRED_CARD = GatewayFailure("expired_card", "Your card has expired.", "card_error")
INCORRECT_CVC = GatewayFailure("incorrect_cvc", "Your card's security code is incorrect.", "card_error")
PROCESSING_ERROR = GatewayFailure("processing_error", "An error occurred while processing your card.", "card_error")
NETWORK_ERROR = GatewayFailure("network_error", "Network error occurred. Please try again.", "api_error")

# Drawn from at random when a confirmation fails the processor's success roll
SIMULATED_ERRORS: tuple[GatewayFailure, ...] = (
    CARD_DECLINED,
    INSUFFICIENT_FUNDS,
    EXPIRED_CARD,
    INCORRECT_CVC,
    PROCESSING_ERROR,
    NETWORK_ERROR,
)

# Test card numbers that always decline, whatever the success roll
DECLINED_TEST_CARDS: dict[str, GatewayFailure] = {
    "4000000000000002": CARD_DECLINED,
    "4000000000000069": EXPIRED_CARD,
    "4000000000000127": INCORRECT_CVC,
    "4000000000000119": PROCESSING_ERROR,
}
