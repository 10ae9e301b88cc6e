"""Shared BDD fixtures and step definitions for shipping."""

import pytest
from orderflow.order.order import Order
from protean import current_domain
from pytest_bdd import given, parsers, then, when

USER_ID = "user-bdd"
LABEL_COST = 11.40


@pytest.fixture()
def outcome():
    """Result of the last simulator call."""
    return {"result": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a paid order with a "{carrier}" "{service}" label'), target_fixture="shipment")
def _labelled_order(place_order, pay_order, shipping_simulator, carrier, service):
    order = place_order(USER_ID)
    pay_order(order)
    result = shipping_simulator.create_label(str(order.id), {"carrier": carrier, "service": service, "rate": LABEL_COST})
    assert result.success, result.error
    return result.shipment


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the parcel is tracked {hours:d} hours after the label was created"))
def _track(shipping_simulator, shipment, clock, hours, outcome):
    clock.advance(hours=hours)
    outcome["result"] = shipping_simulator.track(shipment.tracking_number)


@when(parsers.cfparse("the shipment is cancelled {hours:d} hours after the label was created"))
def _cancel(shipping_simulator, shipment, clock, hours, outcome):
    clock.advance(hours=hours)
    outcome["result"] = shipping_simulator.cancel_shipment(shipment.id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the tracking status is "{status}"'))
def _tracking_status(outcome, status):
    assert outcome["result"].status == status


@then(parsers.cfparse("the tracking history has {count:d} events"))
def _history_length(outcome, count):
    assert len(outcome["result"].events) == count


@then(parsers.cfparse("the cancellation succeeds with a refund of {refund:f}"))
def _cancellation_succeeds(outcome, refund):
    assert outcome["result"].success, outcome["result"].error
    assert outcome["result"].refund == pytest.approx(refund)


@then(parsers.cfparse('the cancellation fails with "{code}"'))
def _cancellation_fails(outcome, code):
    assert outcome["result"].error.code == code


@then(parsers.cfparse('the order status is "{status}"'))
def _order_status(shipment, status):
    assert current_domain.repository_for(Order).get(shipment.order_id).status == status
