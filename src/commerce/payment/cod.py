"""Cash-on-delivery confirmation — command and handler.

COD orders need no gateway round-trip: they are confirmed straight after
placement and paid on delivery.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.order.order import Order

logger = structlog.get_logger(__name__)


@commerce.command(part_of="Order")
class ConfirmCashOnDelivery:
    order_id = Identifier(required=True)


@commerce.command_handler(part_of=Order)
class ConfirmCashOnDeliveryHandler:
    @handle(ConfirmCashOnDelivery)
    def confirm_cash_on_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.confirm_cash_on_delivery():
            repo.add(order)
            logger.info("cod_order_confirmed", order_id=command.order_id, order_number=order.order_number)
