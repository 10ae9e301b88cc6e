"""Payment simulator — intents, confirmation, fees and refunds.

Models a card processor in test mode. Randomness (success rolls, error picks,
generated ids) comes from an injected ``random.Random`` and latency from an
injected ``DelayStrategy``. Latency is always spent before any record is read
or written, so a caller that gives up during the wait leaves no trace.

Amounts are integer cents. Business failures are returned as results, never
raised; lookups raise ``NotFoundError``/``AuthorizationError``.
"""

import json
import math
import random

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from orderflow.access.guard import (
    Principal,
    ensure_amount_matches,
    ensure_owner_or_admin,
    ensure_refund_within_balance,
)
from orderflow.config import Settings, get_settings
from orderflow.errors import (
    AlreadyConfirmed,
    AmountTooLow,
    GatewayFailure,
    IllegalTransition,
    IntentNotFound,
    InvalidRequest,
    NotRefundable,
    OrderflowError,
    OrderNotFound,
    TransactionNotFound,
)
from orderflow.order.order import Order, OrderStatus
from orderflow.payment.intent import PaymentIntent, Transaction, TransactionStatus
from orderflow.payment.methods import describe_method, validate_payment_method
from orderflow.payment.processors import DEFAULT_PROCESSOR, SIMULATED_ERRORS, Processor, get_processor
from orderflow.payment.results import ConfirmationResult, IntentResult, RefundRecord, RefundResult
from orderflow.simulation import Clock, DelayStrategy, default_delay, default_rng, utc_now
from orderflow.utils.locking import record_lock

logger = structlog.get_logger(__name__)

REFUND_FAILED = GatewayFailure("refund_failed", "Refund processing failed. Please try again later.", "refund_error")


def _as_failure(exc: OrderflowError) -> GatewayFailure:
    return GatewayFailure(exc.code, exc.message, "invalid_request_error")


class PaymentSimulator:
    def __init__(
        self,
        rng: random.Random | None = None,
        delay: DelayStrategy | None = None,
        clock: Clock = utc_now,
        settings: Settings | None = None,
    ) -> None:
        self.rng = rng or default_rng()
        self.delay = delay or default_delay()
        self.clock = clock
        self.settings = settings or get_settings()

    # -------------------------------------------------------------------
    # Intents
    # -------------------------------------------------------------------
    def create_intent(
        self,
        amount: int,
        currency: str = "usd",
        metadata: dict | None = None,
        requester: Principal | None = None,
    ) -> IntentResult:
        """Open an intent for ``amount`` cents, linking the order named in metadata."""
        self.delay.wait(500, 1000, self.rng)
        try:
            with record_lock():
                intent = self._create_intent(amount, currency, dict(metadata or {}), requester)
        except OrderflowError as exc:
            return IntentResult(success=False, error=_as_failure(exc))
        return IntentResult(success=True, intent=intent)

    def _create_intent(self, amount, currency, metadata, requester) -> PaymentIntent:
        minimum = self.settings.min_intent_amount
        if amount is None or amount < minimum:
            raise AmountTooLow(f"Amount must be at least {minimum} cents")

        order = None
        if metadata.get("order_id"):
            order = self._load_order(metadata["order_id"])
            if requester is not None:
                ensure_owner_or_admin(requester, order.user_id)
            if order.is_paid:
                raise AlreadyConfirmed(f"Order {order.id} is already paid")
            ensure_amount_matches(order.total_cents, amount)

        if requester is not None and not requester.is_admin:
            metadata["user_id"] = requester.user_id
        elif order is not None:
            metadata.setdefault("user_id", str(order.user_id))

        now = self.clock()
        intent_id = self._generate_id("pi")
        intent = PaymentIntent(
            id=intent_id,
            amount=amount,
            currency=(currency or "usd").lower(),
            client_secret=f"{intent_id}_secret_{self.rng.getrandbits(128):032x}",
            order_id=str(order.id) if order is not None else None,
            user_id=metadata.get("user_id"),
            metadata_json=json.dumps(metadata),
            created_at=now,
        )
        current_domain.repository_for(PaymentIntent).add(intent)

        if order is not None:
            order.record_intent(intent_id, amount, now)
            current_domain.repository_for(Order).add(order)

        logger.info("payment_intent_created", intent_id=intent_id, amount=amount, order_id=intent.order_id)
        return intent

    def confirm_intent(
        self,
        intent_id: str,
        payment_method: dict,
        processor: str | None = None,
        requester: Principal | None = None,
    ) -> ConfirmationResult:
        """Confirm an intent. Confirming an already-succeeded intent never charges twice."""
        config = get_processor(processor)
        low, high = config.latency_ms if config is not None else (1000, 3000)
        self.delay.wait(low, high, self.rng)
        try:
            with record_lock():
                return self._confirm(intent_id, payment_method, processor or DEFAULT_PROCESSOR, config, requester)
        except OrderflowError as exc:
            return ConfirmationResult(success=False, error=_as_failure(exc))

    def _confirm(self, intent_id, payment_method, processor_key, processor: Processor | None, requester):
        intent = self._load_intent(intent_id)
        if requester is not None and intent.user_id:
            ensure_owner_or_admin(requester, intent.user_id)

        order = self._load_order(intent.order_id) if intent.order_id else None
        if intent.is_succeeded or (order is not None and order.is_paid):
            raise AlreadyConfirmed("Payment intent already confirmed")
        if order is not None and not order.can_transition_to(OrderStatus.PAID):
            raise IllegalTransition(f"Order {order.id} is {order.status} and cannot be paid")

        if processor is None:
            failure = GatewayFailure(
                "invalid_processor", f"Unknown payment processor {processor_key}", "invalid_request_error"
            )
            return ConfirmationResult(success=False, intent=intent, error=failure)

        failure = validate_payment_method(payment_method, self.clock().date())
        if failure is None and self.rng.random() >= processor.success_rate:
            failure = self.rng.choice(SIMULATED_ERRORS)
        if failure is not None:
            return self._record_failure(intent, order, processor, failure)

        now = self.clock()
        fee = processor.processing_fee(intent.amount)
        method_summary = describe_method(payment_method)
        transaction = Transaction(
            id=self._generate_id("txn"),
            intent_id=intent.id,
            order_id=intent.order_id,
            user_id=intent.user_id,
            amount=intent.amount,
            processing_fee=fee,
            net_amount=intent.amount - fee,
            currency=intent.currency,
            processor=processor.key,
            payment_method=json.dumps(method_summary),
            created_at=now,
        )
        intent.succeed(transaction.id, processor.key, method_summary, now)

        current_domain.repository_for(Transaction).add(transaction)
        current_domain.repository_for(PaymentIntent).add(intent)
        if order is not None:
            order.mark_paid(
                intent_id=intent.id,
                transaction_id=transaction.id,
                processor=processor.key,
                amount=intent.amount,
                fee=fee,
                currency=intent.currency,
                at=now,
            )
            current_domain.repository_for(Order).add(order)

        logger.info(
            "payment_confirmed",
            intent_id=intent.id,
            transaction_id=transaction.id,
            processor=processor.key,
            amount=intent.amount,
            fee=fee,
        )
        return ConfirmationResult(success=True, intent=intent, transaction=transaction)

    def _record_failure(self, intent, order, processor, failure) -> ConfirmationResult:
        intent.record_failure(failure.code, failure.message, processor.key)
        current_domain.repository_for(PaymentIntent).add(intent)
        if order is not None:
            order.record_payment_failure(intent.id, intent.amount, failure.code, failure.message, self.clock())
            current_domain.repository_for(Order).add(order)

        logger.info("payment_failed", intent_id=intent.id, processor=processor.key, code=failure.code)
        return ConfirmationResult(success=False, intent=intent, error=failure)

    def process_payment(
        self,
        amount: int,
        payment_method: dict,
        processor: str | None = None,
        currency: str = "usd",
        metadata: dict | None = None,
        requester: Principal | None = None,
    ) -> ConfirmationResult:
        """Create and confirm in one call; returns the confirmation result."""
        created = self.create_intent(amount, currency, metadata, requester)
        if not created.success:
            return ConfirmationResult(success=False, error=created.error)
        return self.confirm_intent(created.intent.id, payment_method, processor, requester)

    # -------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------
    def process_refund(
        self,
        transaction_id: str,
        amount: int | None = None,
        reason: str = "requested_by_customer",
        requester: Principal | None = None,
    ) -> RefundResult:
        """Refund ``amount`` cents (default: the whole remaining balance)."""
        self.delay.wait(1000, 2000, self.rng)
        try:
            with record_lock():
                return self._refund(transaction_id, amount, reason or "requested_by_customer", requester)
        except OrderflowError as exc:
            return RefundResult(success=False, error=_as_failure(exc))

    def _refund(self, transaction_id, amount, reason, requester) -> RefundResult:
        transaction = self._load_transaction(transaction_id)
        if requester is not None:
            ensure_owner_or_admin(requester, transaction.user_id)

        order = self._load_order(transaction.order_id) if transaction.order_id else None
        if order is not None:
            if not order.is_paid:
                raise NotRefundable("Only paid orders can be refunded")
            paid, refunded = order.payment_info.amount, order.refunded_total
        else:
            if transaction.status == TransactionStatus.REFUNDED.value:
                raise NotRefundable("Transaction has already been fully refunded")
            paid, refunded = transaction.amount, transaction.amount_refunded or 0

        if amount is None:
            amount = paid - refunded
        if amount <= 0:
            raise InvalidRequest("Refund amount must be greater than zero", code="invalid_amount")
        ensure_refund_within_balance(paid, refunded, amount)

        if self.rng.random() >= self.settings.refund_success_rate:
            logger.info("refund_failed", transaction_id=transaction_id, amount=amount)
            return RefundResult(success=False, error=REFUND_FAILED)

        now = self.clock()
        refund_id = self._generate_id("re")
        transaction.apply_refund(amount)
        current_domain.repository_for(Transaction).add(transaction)

        if order is not None:
            fully_refunded = order.record_refund(refund_id, transaction.id, amount, reason, now)
            current_domain.repository_for(Order).add(order)
        else:
            fully_refunded = transaction.status == TransactionStatus.REFUNDED.value

        logger.info(
            "refund_processed",
            refund_id=refund_id,
            transaction_id=transaction_id,
            amount=amount,
            fully_refunded=fully_refunded,
        )
        return RefundResult(
            success=True,
            refund=RefundRecord(
                refund_id=refund_id,
                transaction_id=str(transaction.id),
                amount=amount,
                currency=transaction.currency,
                reason=reason,
                status="succeeded",
                fully_refunded=fully_refunded,
            ),
        )

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def get_intent(self, intent_id: str, requester: Principal) -> PaymentIntent:
        intent = self._load_intent(intent_id)
        ensure_owner_or_admin(requester, intent.user_id)
        return intent

    def get_transaction(self, transaction_id: str, requester: Principal) -> Transaction:
        transaction = self._load_transaction(transaction_id)
        ensure_owner_or_admin(requester, transaction.user_id)
        return transaction

    def payment_history(self, requester: Principal, page: int = 1, limit: int = 10, status: str | None = None):
        """One page of the requester's orders with their payment records, newest first."""
        page, limit = max(page, 1), max(limit, 1)
        results = current_domain.repository_for(Order).page_for_user(requester.user_id, page, limit, status)
        return {
            "payments": results.items,
            "pagination": {
                "total": results.total,
                "page": page,
                "pages": math.ceil(results.total / limit),
                "limit": limit,
            },
        }

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _generate_id(self, prefix: str) -> str:
        return f"{prefix}_{self.rng.getrandbits(96):024x}"

    def _load_intent(self, intent_id) -> PaymentIntent:
        try:
            return current_domain.repository_for(PaymentIntent).get(intent_id)
        except ObjectNotFoundError as exc:
            raise IntentNotFound(f"Payment intent {intent_id} not found") from exc

    def _load_transaction(self, transaction_id) -> Transaction:
        try:
            return current_domain.repository_for(Transaction).get(transaction_id)
        except ObjectNotFoundError as exc:
            raise TransactionNotFound(f"Transaction {transaction_id} not found") from exc

    def _load_order(self, order_id) -> Order:
        try:
            return current_domain.repository_for(Order).get(order_id)
        except ObjectNotFoundError as exc:
            raise OrderNotFound(f"Order {order_id} not found") from exc
