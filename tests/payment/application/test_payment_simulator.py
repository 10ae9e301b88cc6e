"""Application tests for PaymentSimulator — intents, confirmation and lookups.

Covers:
- Intent creation rules (minimum amount, order linkage, ownership, amount matching)
- Confirmation outcomes driven by card data and the processor's success roll
- Confirming twice never charges twice
"""

import pytest
from orderflow.errors import AuthorizationError, IntentNotFound, TransactionNotFound
from orderflow.order.order import Order, OrderStatus
from orderflow.order.workflow import OrderWorkflow
from orderflow.payment.intent import PaymentIntent, Transaction
from orderflow.payment.processors import SIMULATED_ERRORS
from protean import current_domain


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _transaction_count():
    return current_domain.repository_for(Transaction)._dao.query.all().total


class TestCreateIntent:
    def test_standalone_intent(self, payment_simulator, alice):
        result = payment_simulator.create_intent(2500, requester=alice)

        assert result.success
        intent = result.intent
        assert intent.id.startswith("pi_")
        assert len(intent.id) == len("pi_") + 24
        assert intent.client_secret.startswith(f"{intent.id}_secret_")
        assert intent.status == "requires_payment_method"
        assert str(intent.user_id) == alice.user_id

    def test_amount_below_minimum(self, payment_simulator, alice):
        result = payment_simulator.create_intent(49, requester=alice)
        assert not result.success
        assert result.error.code == "amount_too_low"

    def test_intent_linked_to_order(self, payment_simulator, place_order, alice):
        order = place_order(alice.user_id)

        result = payment_simulator.create_intent(10000, metadata={"order_id": str(order.id)}, requester=alice)

        assert result.success
        assert str(result.intent.order_id) == str(order.id)
        saved = _order(order.id)
        assert saved.payment_intent_id == result.intent.id
        assert saved.history[-1].action == "intent_created"

    def test_amount_must_match_order_total(self, payment_simulator, place_order, alice):
        order = place_order(alice.user_id)

        result = payment_simulator.create_intent(9999, metadata={"order_id": str(order.id)}, requester=alice)

        assert not result.success
        assert result.error.code == "amount_mismatch"
        assert current_domain.repository_for(PaymentIntent)._dao.query.all().total == 0

    def test_other_users_order_is_forbidden(self, payment_simulator, place_order, alice, bob):
        order = place_order(alice.user_id)
        result = payment_simulator.create_intent(10000, metadata={"order_id": str(order.id)}, requester=bob)
        assert result.error.code == "forbidden"

    def test_unknown_order(self, payment_simulator, alice):
        result = payment_simulator.create_intent(10000, metadata={"order_id": "missing"}, requester=alice)
        assert result.error.code == "order_not_found"

    def test_paid_order_rejects_new_intent(self, payment_simulator, place_order, pay_order, alice):
        order = place_order(alice.user_id)
        pay_order(order, alice)

        result = payment_simulator.create_intent(10000, metadata={"order_id": str(order.id)}, requester=alice)
        assert result.error.code == "already_confirmed"


class TestConfirmIntent:
    def test_successful_confirmation(self, payment_simulator, place_order, card_method, alice):
        order = place_order(alice.user_id)
        intent = payment_simulator.create_intent(10000, metadata={"order_id": str(order.id)}, requester=alice).intent

        result = payment_simulator.confirm_intent(intent.id, card_method, "STRIPE", alice)

        assert result.success
        transaction = result.transaction
        assert transaction.id.startswith("txn_")
        assert transaction.amount == 10000
        assert transaction.processing_fee == 320
        assert transaction.net_amount == 9680
        assert result.intent.status == "succeeded"

        saved = _order(order.id)
        assert saved.status == "paid"
        assert saved.payment_status == "paid"
        assert saved.payment_info.transaction_id == transaction.id
        assert saved.payment_info.fee == 320

    def test_payment_method_summary_is_stored(self, payment_simulator, card_method, alice):
        intent = payment_simulator.create_intent(5000, requester=alice).intent
        result = payment_simulator.confirm_intent(intent.id, card_method, "STRIPE", alice)
        assert result.intent.payment_method == '{"type": "card", "last4": "4242", "brand": "visa"}'

    def test_declined_card(self, payment_simulator, place_order, card_method, alice):
        order = place_order(alice.user_id)
        intent = payment_simulator.create_intent(10000, metadata={"order_id": str(order.id)}, requester=alice).intent
        card_method["card"]["number"] = "4000000000000002"

        result = payment_simulator.confirm_intent(intent.id, card_method, "STRIPE", alice)

        assert not result.success
        assert result.error.code == "card_declined"
        assert result.intent.status == "requires_payment_method"
        saved = _order(order.id)
        assert saved.status == "pending"
        assert saved.payment_status == "unpaid"
        assert saved.history[-1].action == "payment_failed"
        assert saved.history[-1].error_code == "card_declined"

    def test_failed_roll_then_retry(self, payment_simulator, rng, place_order, card_method, alice):
        order = place_order(alice.user_id)
        intent = payment_simulator.create_intent(10000, metadata={"order_id": str(order.id)}, requester=alice).intent

        rng.rolls.append(0.99)
        failed = payment_simulator.confirm_intent(intent.id, card_method, "STRIPE", alice)
        assert not failed.success
        assert failed.error in SIMULATED_ERRORS

        retried = payment_simulator.confirm_intent(intent.id, card_method, "STRIPE", alice)
        assert retried.success
        assert _order(order.id).status == "paid"

    def test_confirming_twice_charges_once(self, payment_simulator, place_order, card_method, alice):
        order = place_order(alice.user_id)
        intent = payment_simulator.create_intent(10000, metadata={"order_id": str(order.id)}, requester=alice).intent

        first = payment_simulator.confirm_intent(intent.id, card_method, "STRIPE", alice)
        second = payment_simulator.confirm_intent(intent.id, card_method, "STRIPE", alice)

        assert first.success
        assert not second.success
        assert second.error.code == "already_confirmed"
        assert _transaction_count() == 1
        confirmations = [e for e in _order(order.id).history if e.action == "payment_confirmed"]
        assert len(confirmations) == 1

    def test_processor_fees_apply(self, payment_simulator, card_method, alice):
        intent = payment_simulator.create_intent(10000, requester=alice).intent
        result = payment_simulator.confirm_intent(intent.id, card_method, "PAYPAL", alice)
        assert result.transaction.processing_fee == 398
        assert result.transaction.processor == "PAYPAL"

    def test_unknown_processor(self, payment_simulator, card_method, alice):
        intent = payment_simulator.create_intent(5000, requester=alice).intent
        result = payment_simulator.confirm_intent(intent.id, card_method, "VENMO", alice)
        assert result.error.code == "invalid_processor"

    def test_unknown_intent(self, payment_simulator, card_method, alice):
        result = payment_simulator.confirm_intent("pi_missing", card_method, "STRIPE", alice)
        assert result.error.code == "intent_not_found"

    def test_canceled_order_cannot_be_paid(self, payment_simulator, place_order, card_method, alice, admin, clock):
        order = place_order(alice.user_id)
        intent = payment_simulator.create_intent(10000, metadata={"order_id": str(order.id)}, requester=alice).intent
        OrderWorkflow(clock=clock).update_status(str(order.id), OrderStatus.CANCELED, admin)

        result = payment_simulator.confirm_intent(intent.id, card_method, "STRIPE", alice)

        assert result.error.code == "illegal_transition"
        assert _transaction_count() == 0

    def test_process_payment(self, payment_simulator, place_order, card_method, alice):
        order = place_order(alice.user_id)

        result = payment_simulator.process_payment(
            10000, card_method, "STRIPE", metadata={"order_id": str(order.id)}, requester=alice
        )

        assert result.success
        assert _order(order.id).status == "paid"


class TestLookups:
    def test_get_intent(self, payment_simulator, alice):
        intent = payment_simulator.create_intent(5000, requester=alice).intent
        assert payment_simulator.get_intent(intent.id, alice).id == intent.id

    def test_get_intent_of_other_user(self, payment_simulator, alice, bob):
        intent = payment_simulator.create_intent(5000, requester=alice).intent
        with pytest.raises(AuthorizationError):
            payment_simulator.get_intent(intent.id, bob)

    def test_get_unknown_intent(self, payment_simulator, alice):
        with pytest.raises(IntentNotFound):
            payment_simulator.get_intent("pi_missing", alice)

    def test_get_transaction(self, payment_simulator, place_order, pay_order, alice, admin):
        order = place_order(alice.user_id)
        transaction = pay_order(order, alice).transaction
        assert payment_simulator.get_transaction(transaction.id, alice).amount == 10000
        assert payment_simulator.get_transaction(transaction.id, admin).amount == 10000

    def test_get_unknown_transaction(self, payment_simulator, alice):
        with pytest.raises(TransactionNotFound):
            payment_simulator.get_transaction("txn_missing", alice)

    def test_payment_history_is_paginated(self, payment_simulator, place_order, pay_order, alice, bob, clock):
        first = place_order(alice.user_id)
        clock.advance(minutes=1)
        place_order(alice.user_id)
        clock.advance(minutes=1)
        place_order(alice.user_id)
        place_order(bob.user_id)
        pay_order(first, alice)

        history = payment_simulator.payment_history(alice, page=1, limit=2)
        assert len(history["payments"]) == 2
        assert history["pagination"] == {"total": 3, "page": 1, "pages": 2, "limit": 2}

        paid = payment_simulator.payment_history(alice, status="paid")
        assert [o.id for o in paid["payments"]] == [first.id]
