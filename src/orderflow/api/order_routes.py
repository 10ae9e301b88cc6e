"""Order routes — checkout, lookups and administrative status changes."""

from fastapi import APIRouter, Depends

from orderflow.access.guard import Principal
from orderflow.api.auth import get_current_principal, require_admin
from orderflow.api.envelope import success
from orderflow.api.schemas import CheckoutRequest, UpdateOrderStatusRequest
from orderflow.api.serializers import order_view
from orderflow.order.order import OrderStatus
from orderflow.order.workflow import OrderWorkflow

order_router = APIRouter(prefix="/orders", tags=["orders"])


def get_workflow() -> OrderWorkflow:
    return OrderWorkflow()


@order_router.post("")
def checkout(
    body: CheckoutRequest | None = None,
    principal: Principal = Depends(get_current_principal),
    workflow: OrderWorkflow = Depends(get_workflow),
):
    body = body or CheckoutRequest()
    order = workflow.checkout(
        principal.user_id,
        shipping_address=body.shipping_address.model_dump() if body.shipping_address else None,
        billing_address=body.billing_address.model_dump() if body.billing_address else None,
        payment_method=body.payment_method,
    )
    return success(order_view(order), "Order placed", status_code=201)


@order_router.get("")
def list_orders(
    status: OrderStatus | None = None,
    principal: Principal = Depends(require_admin),
    workflow: OrderWorkflow = Depends(get_workflow),
):
    orders = workflow.list_orders(principal, status)
    return success([order_view(o) for o in orders], "Orders retrieved")


# Declared before /{order_id} so the literal path wins
@order_router.get("/myOrders")
def list_my_orders(
    principal: Principal = Depends(get_current_principal),
    workflow: OrderWorkflow = Depends(get_workflow),
):
    orders = workflow.list_my_orders(principal)
    return success([order_view(o) for o in orders], "Orders retrieved")


@order_router.get("/{order_id}")
def get_order(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    workflow: OrderWorkflow = Depends(get_workflow),
):
    return success(order_view(workflow.get_order(order_id, principal)), "Order retrieved")


@order_router.put("/{order_id}")
def update_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    principal: Principal = Depends(require_admin),
    workflow: OrderWorkflow = Depends(get_workflow),
):
    order = workflow.update_status(order_id, body.status, principal)
    return success(order_view(order), "Order status updated")
