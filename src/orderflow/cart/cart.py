"""Cart aggregate — one mutable list of (product, quantity) pairs per user.

A cart is keyed by its owner's id, so every user has at most one. Checkout
empties it instead of deleting it.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer

from orderflow.domain import orderflow


@orderflow.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    position = Integer(default=0)
    added_at = DateTime()


@orderflow.aggregate
class Cart:
    user_id = Identifier(identifier=True)
    items = HasMany(CartItem)
    updated_at = DateTime()

    @classmethod
    def create(cls, user_id):
        return cls(user_id=user_id, updated_at=datetime.now(UTC))

    @property
    def lines(self) -> list[CartItem]:
        """Items in the order they were first added."""
        return sorted(self.items, key=lambda item: item.position)

    def find_item(self, product_id) -> CartItem | None:
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def add_item(self, product_id, quantity):
        """Add a product, or increase its quantity if already present."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = self.find_item(product_id)
        if existing:
            existing.quantity += quantity
            self.add_items(existing)
        else:
            position = max((i.position for i in self.items), default=-1) + 1
            self.add_items(CartItem(product_id=product_id, quantity=quantity, position=position, added_at=now))

        self.updated_at = now

    def set_quantity(self, product_id, quantity):
        item = self.find_item(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Item not found in cart"]})

        item.quantity = quantity
        self.add_items(item)
        self.updated_at = datetime.now(UTC)

    def remove_item(self, product_id):
        """Drop a product from the cart; absent products are ignored."""
        item = self.find_item(product_id)
        if item is not None:
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

    def clear(self):
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)
