"""Payment routes — thin adapters over the payment simulator.

Simulator failures come back as results; ``raise_for_failure`` turns them
into the matching error response.
"""

from fastapi import APIRouter, Depends, Query

from orderflow.access.guard import Principal
from orderflow.api.auth import get_current_principal
from orderflow.api.envelope import success
from orderflow.api.schemas import ConfirmIntentRequest, CreateIntentRequest, ProcessPaymentRequest, RefundRequest
from orderflow.api.serializers import intent_view, payment_summary_view, transaction_view
from orderflow.errors import raise_for_failure
from orderflow.payment import get_payment_simulator
from orderflow.payment.simulator import PaymentSimulator

payment_router = APIRouter(prefix="/payments", tags=["payments"])


def _metadata(body: CreateIntentRequest | ProcessPaymentRequest, principal: Principal) -> dict:
    metadata = dict(body.metadata)
    if body.order_id:
        metadata["order_id"] = body.order_id
    if principal.email:
        metadata["user_email"] = principal.email
    return metadata


@payment_router.post("/intents")
def create_intent(
    body: CreateIntentRequest,
    principal: Principal = Depends(get_current_principal),
    simulator: PaymentSimulator = Depends(get_payment_simulator),
):
    result = simulator.create_intent(body.amount, body.currency, _metadata(body, principal), principal)
    raise_for_failure(result.error)
    return success({"payment_intent": intent_view(result.intent, include_secret=True)}, "Payment intent created", 201)


@payment_router.post("/intents/{intent_id}/confirm")
def confirm_intent(
    intent_id: str,
    body: ConfirmIntentRequest,
    principal: Principal = Depends(get_current_principal),
    simulator: PaymentSimulator = Depends(get_payment_simulator),
):
    result = simulator.confirm_intent(intent_id, body.payment_method.model_dump(), body.processor, principal)
    raise_for_failure(result.error)
    return success(
        {"payment_intent": intent_view(result.intent), "transaction": transaction_view(result.transaction)},
        "Payment confirmed",
    )


@payment_router.post("/process")
def process_payment(
    body: ProcessPaymentRequest,
    principal: Principal = Depends(get_current_principal),
    simulator: PaymentSimulator = Depends(get_payment_simulator),
):
    result = simulator.process_payment(
        body.amount,
        body.payment_method.model_dump(),
        processor=body.processor,
        currency=body.currency,
        metadata=_metadata(body, principal),
        requester=principal,
    )
    raise_for_failure(result.error)
    return success(
        {"payment_intent": intent_view(result.intent), "transaction": transaction_view(result.transaction)},
        "Payment processed",
    )


@payment_router.post("/refund")
def refund(
    body: RefundRequest,
    principal: Principal = Depends(get_current_principal),
    simulator: PaymentSimulator = Depends(get_payment_simulator),
):
    result = simulator.process_refund(body.transaction_id, body.amount, body.reason, principal)
    raise_for_failure(result.error)
    return success({"refund": result.refund}, "Refund processed")


# Literal paths are declared before /{transaction_id}
@payment_router.get("/history")
def payment_history(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status: str | None = None,
    principal: Principal = Depends(get_current_principal),
    simulator: PaymentSimulator = Depends(get_payment_simulator),
):
    history = simulator.payment_history(principal, page=page, limit=limit, status=status)
    return success(
        {
            "payments": [payment_summary_view(o) for o in history["payments"]],
            "pagination": history["pagination"],
        },
        "Payment history retrieved",
    )


@payment_router.get("/intents/{intent_id}")
def get_intent(
    intent_id: str,
    principal: Principal = Depends(get_current_principal),
    simulator: PaymentSimulator = Depends(get_payment_simulator),
):
    return success({"payment_intent": intent_view(simulator.get_intent(intent_id, principal))}, "Payment intent retrieved")


@payment_router.get("/{transaction_id}")
def get_transaction(
    transaction_id: str,
    principal: Principal = Depends(get_current_principal),
    simulator: PaymentSimulator = Depends(get_payment_simulator),
):
    transaction = simulator.get_transaction(transaction_id, principal)
    return success({"transaction": transaction_view(transaction)}, "Transaction retrieved")
