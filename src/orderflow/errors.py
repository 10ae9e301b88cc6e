"""Error taxonomy for the order workflow.

Domain aggregates raise ``protean.exceptions.ValidationError`` for invariant
violations. Services raise the classes below; each carries an HTTP status and a
stable machine-readable ``code`` so the API layer can render the error envelope
without inspecting messages.

Gateway simulators never raise for business failures. They return a result
carrying a ``GatewayFailure`` and ``raise_for_failure`` turns it into one of
these exceptions at the boundary.
"""

from dataclasses import dataclass


class OrderflowError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, code: str | None = None, errors: dict | list | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.errors = errors


# ---------------------------------------------------------------------------
# 400
# ---------------------------------------------------------------------------
class InvalidRequest(OrderflowError):
    status_code = 400
    code = "invalid_request"


class EmptyCart(InvalidRequest):
    code = "empty_cart"


class InvalidProduct(InvalidRequest):
    code = "invalid_product"

    def __init__(self, product_id: str, message: str | None = None) -> None:
        super().__init__(message or f"Product {product_id} is not available", errors={"product_id": product_id})
        self.product_id = product_id


class AmountTooLow(InvalidRequest):
    code = "amount_too_low"


class AmountMismatch(InvalidRequest):
    code = "amount_mismatch"


class SimulatedGatewayError(OrderflowError):
    """A simulated processor or carrier rejected the request."""

    status_code = 400
    code = "gateway_error"

    def __init__(self, message: str, code: str, error_type: str | None = None) -> None:
        super().__init__(message, code=code, errors={"code": code, "type": error_type} if error_type else None)
        self.error_type = error_type


# ---------------------------------------------------------------------------
# 401 / 403
# ---------------------------------------------------------------------------
class AuthenticationError(OrderflowError):
    status_code = 401
    code = "not_authenticated"


class AuthorizationError(OrderflowError):
    status_code = 403
    code = "forbidden"


# ---------------------------------------------------------------------------
# 404
# ---------------------------------------------------------------------------
class NotFoundError(OrderflowError):
    status_code = 404
    code = "not_found"


class ProductNotFound(NotFoundError):
    code = "product_not_found"


class CartItemNotFound(NotFoundError):
    code = "cart_item_not_found"


class OrderNotFound(NotFoundError):
    code = "order_not_found"


class IntentNotFound(NotFoundError):
    code = "intent_not_found"


class TransactionNotFound(NotFoundError):
    code = "transaction_not_found"


class ShipmentNotFound(NotFoundError):
    code = "shipment_not_found"


# ---------------------------------------------------------------------------
# 409
# ---------------------------------------------------------------------------
class ConflictError(OrderflowError):
    status_code = 409
    code = "conflict"


class InsufficientStock(ConflictError):
    code = "insufficient_stock"

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}",
            errors={"product_id": product_id, "requested": requested, "available": available},
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class AlreadyConfirmed(ConflictError):
    code = "already_confirmed"


class NotRefundable(ConflictError):
    code = "not_refundable"


class RefundExceedsBalance(ConflictError):
    code = "refund_exceeds_balance"


class AlreadyInTransit(ConflictError):
    code = "already_in_transit"


class ShipmentExists(ConflictError):
    code = "shipment_exists"


class IllegalTransition(ConflictError):
    code = "illegal_transition"


# ---------------------------------------------------------------------------
# 500
# ---------------------------------------------------------------------------
class InternalError(OrderflowError):
    status_code = 500
    code = "internal_error"


@dataclass(frozen=True)
class GatewayFailure:
    """Error detail carried by a simulator result."""

    code: str
    message: str
    type: str = "api_error"


_FAILURE_CLASSES: dict[str, type[OrderflowError]] = {
    AmountTooLow.code: AmountTooLow,
    AmountMismatch.code: AmountMismatch,
    AlreadyConfirmed.code: AlreadyConfirmed,
    NotRefundable.code: NotRefundable,
    RefundExceedsBalance.code: RefundExceedsBalance,
    AlreadyInTransit.code: AlreadyInTransit,
    ShipmentExists.code: ShipmentExists,
    IllegalTransition.code: IllegalTransition,
    OrderNotFound.code: OrderNotFound,
    IntentNotFound.code: IntentNotFound,
    TransactionNotFound.code: TransactionNotFound,
    ShipmentNotFound.code: ShipmentNotFound,
    AuthorizationError.code: AuthorizationError,
    InvalidRequest.code: InvalidRequest,
    "already_cancelled": ConflictError,
}


def raise_for_failure(failure: GatewayFailure | None) -> None:
    """Raise the exception matching a simulator failure, if any."""
    if failure is None:
        return
    error_class = _FAILURE_CLASSES.get(failure.code)
    if error_class is None:
        raise SimulatedGatewayError(failure.message, code=failure.code, error_type=failure.type)
    raise error_class(failure.message, code=failure.code)
