"""PaymentIntent and Transaction aggregates — the payment simulator's own records.

An intent waits in ``requires_payment_method`` until a confirmation succeeds.
A failed confirmation leaves it there with the error attached, so it can be
retried. A Transaction exists only for a succeeded intent and is what refunds
reference.
"""

import json
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from orderflow.domain import orderflow


class IntentStatus(Enum):
    REQUIRES_PAYMENT_METHOD = "requires_payment_method"
    SUCCEEDED = "succeeded"


class TransactionStatus(Enum):
    SUCCEEDED = "succeeded"
    PARTIALLY_REFUNDED = "partially_refunded"
    REFUNDED = "refunded"


@orderflow.aggregate
class PaymentIntent:
    amount = Integer(required=True, min_value=1)
    currency = String(max_length=3, default="usd")
    status = String(choices=IntentStatus, default=IntentStatus.REQUIRES_PAYMENT_METHOD.value)
    client_secret = String(required=True, max_length=255)
    order_id = Identifier()
    user_id = Identifier()
    metadata_json = Text()
    processor = String(max_length=20)
    payment_method = Text()  # JSON summary, never full card data
    last_error_code = String(max_length=50)
    last_error_message = String(max_length=255)
    transaction_id = Identifier()
    created_at = DateTime(required=True)
    confirmed_at = DateTime()

    @property
    def metadata_dict(self) -> dict:
        return json.loads(self.metadata_json) if self.metadata_json else {}

    @property
    def is_succeeded(self) -> bool:
        return self.status == IntentStatus.SUCCEEDED.value

    def record_failure(self, code, message, processor=None):
        self.last_error_code = code
        self.last_error_message = message
        if processor:
            self.processor = processor

    def succeed(self, transaction_id, processor, payment_method, at):
        if self.is_succeeded:
            raise ValidationError({"status": ["Payment intent already confirmed"]})
        self.status = IntentStatus.SUCCEEDED.value
        self.transaction_id = transaction_id
        self.processor = processor
        self.payment_method = json.dumps(payment_method)
        self.last_error_code = None
        self.last_error_message = None
        self.confirmed_at = at


@orderflow.aggregate
class Transaction:
    intent_id = Identifier(required=True)
    order_id = Identifier()
    user_id = Identifier()
    amount = Integer(required=True, min_value=1)
    processing_fee = Integer(required=True)
    net_amount = Integer(required=True)
    currency = String(max_length=3, default="usd")
    processor = String(required=True, max_length=20)
    payment_method = Text()  # JSON summary
    amount_refunded = Integer(default=0, min_value=0)
    status = String(choices=TransactionStatus, default=TransactionStatus.SUCCEEDED.value)
    created_at = DateTime(required=True)

    @property
    def refundable_balance(self) -> int:
        return self.amount - (self.amount_refunded or 0)

    def apply_refund(self, amount):
        if amount > self.refundable_balance:
            raise ValidationError({"amount": ["Refund amount exceeds the remaining balance"]})
        self.amount_refunded = (self.amount_refunded or 0) + amount
        if self.amount_refunded == self.amount:
            self.status = TransactionStatus.REFUNDED.value
        else:
            self.status = TransactionStatus.PARTIALLY_REFUNDED.value
