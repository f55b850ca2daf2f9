"""Mixed checkout workload scenario.

Combines the checkout journeys with read-only traffic (coupon previews,
shipping quotes) with weights that model a storefront. This is the
recommended scenario for load baseline testing.
"""

from locust import HttpUser, between, task

from loadtests.data_generators import shipping_quote_data
from loadtests.scenarios.checkout import (
    CancellationJourney,
    CodFulfilmentJourney,
    DuplicateCallbackJourney,
    OnlinePaymentJourney,
)


class MixedWorkloadUser(HttpUser):
    """Realistic mixed workload simulating concurrent shoppers and operators.

    - Shipping quotes: most common, every cart page view asks for one
    - Online payment: the main conversion path
    - COD fulfilment: operators walking orders to delivery
    - Cancellation: unhappy path, releases stock
    - Duplicate callbacks: gateways retrying their notification
    """

    wait_time = between(0.5, 3.0)
    tasks = {
        OnlinePaymentJourney: 6,
        CodFulfilmentJourney: 4,
        CancellationJourney: 2,
        DuplicateCallbackJourney: 1,
    }

    @task(8)
    def quote_shipping(self):
        self.client.post("/checkout/shipping", json=shipping_quote_data(), name="POST /checkout/shipping")
