"""Shared BDD fixtures and step definitions for payments."""

import pytest
from orderflow.order.order import Order
from orderflow.payment.intent import Transaction
from protean import current_domain
from pytest_bdd import given, parsers, then, when

USER_ID = "user-bdd"


def _card_method(number):
    return {
        "type": "card",
        "card": {"number": number, "exp_month": 12, "exp_year": 2030, "cvc": "123"},
        "billing_details": {"email": "bdd@example.com"},
    }


@pytest.fixture()
def outcome():
    """Result of the last simulator call."""
    return {"result": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a pending order totalling {total:f}"), target_fixture="order")
def _pending_order(place_order, total):
    return place_order(USER_ID, price=total, quantity=1)


@given(parsers.cfparse("an order totalling {total:f} paid in full"), target_fixture="order")
def _paid_order(place_order, pay_order, total):
    order = place_order(USER_ID, price=total, quantity=1)
    pay_order(order)
    return order


@given("a payment intent for the order", target_fixture="intent")
def _intent(payment_simulator, order):
    return payment_simulator.create_intent(order.total_cents, metadata={"order_id": str(order.id)}).intent


@given(parsers.cfparse('the intent was confirmed with card "{number}"'))
def _confirmed(payment_simulator, intent, number):
    assert payment_simulator.confirm_intent(intent.id, _card_method(number)).success


@given(parsers.cfparse("{amount:d} cents have been refunded"))
def _refunded(payment_simulator, order, amount):
    transaction_id = current_domain.repository_for(Order).get(order.id).payment_info.transaction_id
    assert payment_simulator.process_refund(transaction_id, amount).success


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the intent is confirmed with card "{number}"'))
def _confirm(payment_simulator, intent, number, outcome):
    outcome["result"] = payment_simulator.confirm_intent(intent.id, _card_method(number))


@when(parsers.cfparse("{amount:d} cents are refunded"))
def _refund(payment_simulator, order, amount, outcome):
    transaction_id = current_domain.repository_for(Order).get(order.id).payment_info.transaction_id
    outcome["result"] = payment_simulator.process_refund(transaction_id, amount)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the confirmation succeeds")
def _confirmation_succeeds(outcome):
    assert outcome["result"].success, outcome["result"].error


@then(parsers.cfparse('the confirmation fails with "{code}"'))
def _confirmation_fails(outcome, code):
    assert not outcome["result"].success
    assert outcome["result"].error.code == code


@then("the refund succeeds")
def _refund_succeeds(outcome):
    assert outcome["result"].success, outcome["result"].error


@then(parsers.cfparse('the refund fails with "{code}"'))
def _refund_fails(outcome, code):
    assert not outcome["result"].success
    assert outcome["result"].error.code == code


@then(parsers.cfparse("the order has {amount:d} cents left to refund"))
def _balance(order, amount):
    assert current_domain.repository_for(Order).get(order.id).refundable_balance == amount


@then(parsers.cfparse('the order payment status is "{status}"'))
def _payment_status(order, status):
    assert current_domain.repository_for(Order).get(order.id).payment_status == status


@then(parsers.cfparse('the order status is "{status}"'))
def _order_status(order, status):
    assert current_domain.repository_for(Order).get(order.id).status == status


@then(parsers.cfparse("the order has {count:d} transaction"))
def _transaction_count(order, count):
    transactions = current_domain.repository_for(Transaction)._dao.query.filter(order_id=str(order.id)).all()
    assert transactions.total == count
