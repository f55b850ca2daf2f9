"""Commerce bounded context — checkout-to-order commitment.

Turns a shopping cart into a durable, price-correct, payment-verified order:
catalog re-pricing, coupon redemption, shipping, stock reservation, payment
intent/verification and the post-creation order lifecycle.
"""

import structlog
from protean.domain import Domain

commerce = Domain(name="commerce")

logger = structlog.get_logger(__name__)
