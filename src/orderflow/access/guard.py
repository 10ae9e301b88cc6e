"""Authorization and accounting checks shared by the workflow and the gateways."""

from dataclasses import dataclass
from enum import Enum

from orderflow.errors import AmountMismatch, AuthorizationError, RefundExceedsBalance


class Role(Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of an operation."""

    user_id: str
    role: Role = Role.USER
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def ensure_admin(principal: Principal) -> None:
    if not principal.is_admin:
        raise AuthorizationError("Administrator role required")


def ensure_owner_or_admin(principal: Principal, owner_id) -> None:
    if principal.is_admin:
        return
    if owner_id is None or str(owner_id) != str(principal.user_id):
        raise AuthorizationError("Not authorized to access this resource")


def ensure_refund_within_balance(paid: int, already_refunded: int, requested: int) -> None:
    """Refunds may never add up to more than was paid."""
    if already_refunded + requested > paid:
        raise RefundExceedsBalance(
            f"Refund of {requested} exceeds remaining balance of {paid - already_refunded}",
        )


def ensure_amount_matches(expected: int, actual: int) -> None:
    """A payment for an order must be for exactly the order total."""
    if expected != actual:
        raise AmountMismatch(f"Payment amount {actual} does not match order total {expected}")
