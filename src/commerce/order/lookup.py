"""Order queries used by the storefront and the admin panel."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.order.order import Order


@commerce.repository(part_of=Order)
class OrderRepository:
    def find_by_number(self, order_number) -> Order | None:
        matches = self._dao.query.filter(order_number=order_number).all().items
        return matches[0] if matches else None

    def for_customer(self, customer_id) -> list[Order]:
        return self._dao.query.filter(customer_id=str(customer_id)).order_by("-created_at").all().items


def find_order(reference) -> Order:
    """Load an order by its id or by its human-facing order number."""
    repo = current_domain.repository_for(Order)
    try:
        return repo.get(reference)
    except ObjectNotFoundError:
        order = repo.find_by_number(reference)
        if order is None:
            raise
        return order
