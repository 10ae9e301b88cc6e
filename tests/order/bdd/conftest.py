"""Shared BDD fixtures and step definitions for checkout and the order lifecycle."""

import pytest
from orderflow.access.guard import Principal, Role
from orderflow.cart.cart import Cart
from orderflow.cart.store import CartStore
from orderflow.errors import OrderflowError
from orderflow.inventory.product import Product
from orderflow.order.order import Order, OrderStatus
from orderflow.order.workflow import OrderWorkflow
from protean import current_domain
from pytest_bdd import given, parsers, then, when

USER_ID = "user-bdd"
ADMIN = Principal(user_id="user-admin", role=Role.ADMIN)


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def products():
    """Products seeded by the scenario, keyed by title."""
    return {}


@pytest.fixture()
def error():
    """Container for the error raised by the last action."""
    return {"exc": None}


@pytest.fixture()
def workflow(clock):
    return OrderWorkflow(clock=clock)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{title}" priced {price:f} with stock {stock:d}'))
def _product(products, make_product, title, price, stock):
    products[title] = make_product(title=title, price=price, stock=stock)


@given(parsers.cfparse('the cart holds {qty:d} of "{title}"'))
def _cart_holds(products, title, qty):
    CartStore().add_item(USER_ID, str(products[title].id), qty)


@given("the user has checked out", target_fixture="order")
def _checked_out(workflow):
    return workflow.checkout(USER_ID)


@given(parsers.cfparse('an administrator has set the order status to "{status}"'), target_fixture="order")
def _status_set(workflow, order, status):
    return workflow.update_status(str(order.id), OrderStatus(status), ADMIN)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the user checks out", target_fixture="order")
def _check_out(workflow, error):
    try:
        return workflow.checkout(USER_ID)
    except OrderflowError as exc:
        error["exc"] = exc
        return None


@when(parsers.cfparse('an administrator sets the order status to "{status}"'))
def _set_status(workflow, order, status, error):
    try:
        workflow.update_status(str(order.id), OrderStatus(status), ADMIN)
    except OrderflowError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("an order totalling {total:f} is placed"))
def _order_placed(order, total):
    assert order is not None
    assert order.total == pytest.approx(total)


@then(parsers.cfparse('the order status is "{status}"'))
def _order_status(order, status):
    assert current_domain.repository_for(Order).get(order.id).status == status


@then(parsers.cfparse('"{title}" has {stock:d} in stock'))
def _stock_is(products, title, stock):
    assert current_domain.repository_for(Product).get(products[title].id).stock == stock


@then("the cart is empty")
def _cart_empty():
    assert len(current_domain.repository_for(Cart).get(USER_ID).items) == 0


@then(parsers.cfparse('the cart still holds {qty:d} of "{title}"'))
def _cart_still_holds(products, title, qty):
    cart = current_domain.repository_for(Cart).get(USER_ID)
    assert cart.find_item(str(products[title].id)).quantity == qty


@then(parsers.cfparse('checkout fails with "{code}"'))
def _checkout_fails(error, code):
    assert error["exc"] is not None
    assert error["exc"].code == code


@then(parsers.cfparse('the status change fails with "{code}"'))
def _status_change_fails(error, code):
    assert error["exc"] is not None
    assert error["exc"].code == code
