"""Shipping routes — rates, labels, tracking and cancellation."""

from fastapi import APIRouter, Depends

from orderflow.access.guard import Principal
from orderflow.api.auth import get_current_principal
from orderflow.api.envelope import success
from orderflow.api.schemas import CreateLabelRequest, RatesRequest
from orderflow.api.serializers import shipment_view, tracking_view
from orderflow.errors import raise_for_failure
from orderflow.shipping import get_shipping_simulator
from orderflow.shipping.simulator import ShippingSimulator

shipping_router = APIRouter(prefix="/shipping", tags=["shipping"])


@shipping_router.post("/rates")
def calculate_rates(
    body: RatesRequest,
    principal: Principal = Depends(get_current_principal),
    simulator: ShippingSimulator = Depends(get_shipping_simulator),
):
    result = simulator.calculate_rates(body.package.model_dump(), body.destination.model_dump())
    raise_for_failure(result.error)
    return success({"rates": result.rates, "request_id": result.request_id}, "Shipping rates calculated")


@shipping_router.post("/labels")
def create_label(
    body: CreateLabelRequest,
    principal: Principal = Depends(get_current_principal),
    simulator: ShippingSimulator = Depends(get_shipping_simulator),
):
    result = simulator.create_label(
        body.order_id,
        body.selected_rate.model_dump(),
        destination=body.destination.model_dump() if body.destination else None,
        requester=principal,
    )
    raise_for_failure(result.error)
    return success({"shipment": shipment_view(result.shipment)}, "Shipping label created", status_code=201)


@shipping_router.get("/track/{tracking_number}")
def track(
    tracking_number: str,
    simulator: ShippingSimulator = Depends(get_shipping_simulator),
):
    result = simulator.track(tracking_number)
    raise_for_failure(result.error)
    return success(tracking_view(result), "Tracking information retrieved")


@shipping_router.get("/orders/{order_id}")
def shipment_summary(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    simulator: ShippingSimulator = Depends(get_shipping_simulator),
):
    summary = simulator.shipment_summary(order_id, principal)
    tracking = summary["tracking"]
    return success(
        {
            "order_id": summary["order_id"],
            "shipping_info": summary["shipping_info"].to_dict() if summary["shipping_info"] else None,
            "tracking": tracking_view(tracking) if tracking is not None and tracking.success else None,
        },
        "Shipment retrieved",
    )


@shipping_router.delete("/shipments/{shipment_id}")
def cancel_shipment(
    shipment_id: str,
    principal: Principal = Depends(get_current_principal),
    simulator: ShippingSimulator = Depends(get_shipping_simulator),
):
    result = simulator.cancel_shipment(shipment_id, principal)
    raise_for_failure(result.error)
    return success({"shipment": shipment_view(result.shipment), "refund": result.refund}, "Shipment cancelled")
