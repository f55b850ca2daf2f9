"""Stress test scenarios for stock and coupon contention.

HotItemUser sends every checkout at the same item, carrying the same
single-use coupon, so concurrent commits race for one stock row and one
usage counter. Expect 201s until the coupon (and then the item) runs out,
then 409/422s; a 409 with ``checkout_conflict`` means the bounded commit
retry gave up.
"""

import os

from locust import HttpUser, constant_pacing, task

from loadtests.data_generators import checkout_data, seeded_item_ids
from loadtests.helpers.response import extract_error_detail

# Rejections that are the expected outcome of losing a race
EXPECTED_REJECTIONS = {
    (409, "item_unavailable"),
    (409, "coupon_exhausted"),
    (422, "coupon_invalid"),
}


class HotItemUser(HttpUser):
    """Stress test: many shoppers buying the same item with the same coupon."""

    wait_time = constant_pacing(0.1)  # ~10 requests/sec per user

    def on_start(self):
        item_ids = seeded_item_ids()
        if not item_ids:
            raise RuntimeError("Set LOADTEST_ITEM_IDS to the ids printed by `manage.py seed-demo`")
        self.hot_item = [item_ids[0]]
        self.coupon_code = os.getenv("LOADTEST_COUPON", "LAUNCH1")

    @task
    def checkout_hot_item(self):
        with self.client.post(
            "/checkout",
            json=checkout_data(self.hot_item, payment_method="COD", coupon_code=self.coupon_code),
            catch_response=True,
            name="[STRESS] POST /checkout (hot item)",
        ) as resp:
            if resp.status_code == 201:
                return
            if (resp.status_code, resp.json().get("error")) in EXPECTED_REJECTIONS:
                resp.success()
            else:
                resp.failure(f"{resp.status_code} — {extract_error_detail(resp)}")
