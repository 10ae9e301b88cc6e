"""Results returned by the payment simulator.

Business failures come back as ``success=False`` with a ``GatewayFailure``;
the caller decides what to do with them.
"""

from dataclasses import dataclass

from orderflow.errors import GatewayFailure
from orderflow.payment.intent import PaymentIntent, Transaction


@dataclass(frozen=True)
class IntentResult:
    success: bool
    intent: PaymentIntent | None = None
    error: GatewayFailure | None = None


@dataclass(frozen=True)
class ConfirmationResult:
    success: bool
    intent: PaymentIntent | None = None
    transaction: Transaction | None = None
    error: GatewayFailure | None = None


@dataclass(frozen=True)
class RefundRecord:
    refund_id: str
    transaction_id: str
    amount: int
    currency: str
    reason: str
    status: str
    fully_refunded: bool


@dataclass(frozen=True)
class RefundResult:
    success: bool
    refund: RefundRecord | None = None
    error: GatewayFailure | None = None
