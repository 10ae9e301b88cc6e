"""Repository for the Order aggregate."""

from orderflow.domain import orderflow
from orderflow.order.order import Order

# Upper bound for unpaginated listings
MAX_LISTING = 1000


@orderflow.repository(part_of=Order)
class OrderRepository:
    def find_all(self) -> list[Order]:
        return self._dao.query.order_by("-created_at").limit(MAX_LISTING).all().items

    def find_by_status(self, status: str) -> list[Order]:
        return self._dao.query.filter(status=status).order_by("-created_at").limit(MAX_LISTING).all().items

    def find_by_user(self, user_id: str) -> list[Order]:
        return self._dao.query.filter(user_id=user_id).order_by("-created_at").limit(MAX_LISTING).all().items

    def page_for_user(self, user_id: str, page: int, limit: int, payment_status: str | None = None):
        """One page of a user's orders, newest first. Returns the Protean ResultSet."""
        query = self._dao.query.filter(user_id=user_id)
        if payment_status:
            query = query.filter(payment_status=payment_status)
        return query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
