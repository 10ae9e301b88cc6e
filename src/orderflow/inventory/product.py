"""Product aggregate — the slice of catalog data the workflow consumes.

The catalog itself is an external collaborator. Checkout only reads a
product's price, title and active flag, and changes its stock through the
conditional operations on ``ProductRepository``.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from orderflow.domain import orderflow


@orderflow.aggregate
class Product:
    title = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()

    @classmethod
    def create(cls, title, price, stock=0, is_active=True, product_id=None):
        fields = dict(title=title, price=price, stock=stock, is_active=is_active, created_at=datetime.now(UTC))
        if product_id is not None:
            fields["id"] = product_id
        return cls(**fields)

    def can_supply(self, quantity: int) -> bool:
        return bool(self.is_active) and self.stock >= quantity

    def withdraw(self, quantity: int) -> None:
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if self.stock < quantity:
            raise ValidationError({"stock": [f"Cannot withdraw {quantity}, only {self.stock} in stock"]})
        self.stock -= quantity

    def replenish(self, quantity: int) -> None:
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        self.stock += quantity
