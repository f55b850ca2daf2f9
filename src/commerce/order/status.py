"""Administrative order updates — status changes and courier details.

Cancelling an order that has not shipped yet puts its stock back in the
catalog in the same unit of work.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from commerce.catalog.item import CatalogItem
from commerce.domain import commerce
from commerce.errors import InvalidTransition, ItemUnavailable
from commerce.order.order import RESTOCKABLE_STATES, Order, OrderStatus

logger = structlog.get_logger(__name__)


@commerce.command(part_of="Order")
class ChangeOrderStatus:
    """Move an order along its lifecycle and/or update fulfilment details."""

    order_id = Identifier(required=True)
    status = String(max_length=30)
    title = String(max_length=255)
    description = String(max_length=1000)
    location = String(max_length=255)
    forced = Boolean(default=False)
    actor = String(max_length=100, default="Admin")
    awb_number = String(max_length=100)
    courier_name = String(max_length=100)
    tracking_url = String(max_length=500)
    admin_notes = Text()


def _release_stock(order):
    catalog_repo = current_domain.repository_for(CatalogItem)
    for line in order.items:
        try:
            item = catalog_repo.get(line.item_id)
        except ObjectNotFoundError:
            logger.warning("restock_item_missing", order_id=str(order.id), item_id=str(line.item_id))
            continue
        try:
            item.return_stock(line.quantity, variant_id=line.variant_id)
        except ItemUnavailable:
            logger.warning(
                "restock_item_missing",
                order_id=str(order.id),
                item_id=str(line.item_id),
                variant_id=str(line.variant_id),
            )
            continue
        catalog_repo.add(item)


@commerce.command_handler(part_of=Order)
class ChangeOrderStatusHandler:
    @handle(ChangeOrderStatus)
    def change_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if any(v is not None for v in (command.awb_number, command.courier_name, command.tracking_url)):
            order.update_courier(
                awb_number=command.awb_number,
                courier_name=command.courier_name,
                tracking_url=command.tracking_url,
            )
        if command.admin_notes is not None:
            order.set_admin_notes(command.admin_notes)

        changed = False
        if command.status:
            previous = OrderStatus(order.status)
            try:
                changed = order.transition_to(
                    command.status,
                    title=command.title,
                    description=command.description,
                    location=command.location,
                    forced=command.forced,
                    actor=command.actor,
                )
            except InvalidTransition as exc:
                logger.warning(
                    "order_transition_rejected",
                    order_id=command.order_id,
                    current_status=exc.current,
                    target_status=exc.target,
                    forced=command.forced,
                )
                raise

            if changed and command.forced:
                logger.warning(
                    "order_transition_forced",
                    order_id=command.order_id,
                    previous_status=previous.value,
                    new_status=order.status,
                    actor=command.actor,
                )
            if changed and order.status == OrderStatus.CANCELLED.value and previous in RESTOCKABLE_STATES:
                _release_stock(order)

        repo.add(order)
        return changed
