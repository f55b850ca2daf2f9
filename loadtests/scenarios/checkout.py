"""Checkout load test scenarios.

Stateful SequentialTaskSet journeys covering a COD order walked through
fulfilment, an online order paid through the signed callback, and an
online order whose callback is delivered twice.
"""

from locust import SequentialTaskSet, task

from loadtests.data_generators import (
    checkout_data,
    coupon_preview_data,
    payment_callback_data,
    seeded_item_ids,
    shipment_update,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import CheckoutState


class _CheckoutJourney(SequentialTaskSet):
    payment_method = "COD"
    coupon_code = None

    def on_start(self):
        self.state = CheckoutState()
        self.callback = None
        self.item_ids = seeded_item_ids()
        if not self.item_ids:
            raise RuntimeError("Set LOADTEST_ITEM_IDS to the ids printed by `manage.py seed-demo`")

    def _checkout(self):
        payload = checkout_data(self.item_ids, payment_method=self.payment_method, coupon_code=self.coupon_code)
        with self.client.post(
            "/checkout",
            json=payload,
            catch_response=True,
            name=f"POST /checkout ({self.payment_method})",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["order_id"]
                self.state.order_number = body["order_number"]
                self.state.current_status = body["status"]
                if body.get("payment_intent"):
                    self.state.intent_id = body["payment_intent"]["intent_id"]
            elif resp.status_code in (409, 422):
                # Sold out or coupon used up: expected under load
                resp.success()
                self.interrupt()
            else:
                resp.failure(f"Checkout failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    def _change_status(self, payload):
        with self.client.put(
            f"/orders/{self.state.order_id}/status",
            json=payload,
            catch_response=True,
            name=f"PUT /orders/{{id}}/status ({payload.get('status')})",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = resp.json()["status"]
            else:
                resp.failure(f"Status change failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    def _verify(self, expect_duplicate=False):
        payload = self.callback or payment_callback_data(self.state.intent_id)
        self.callback = payload
        with self.client.post(
            "/checkout/verify-payment",
            json=payload,
            catch_response=True,
            name="POST /checkout/verify-payment",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Verification failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()
            elif resp.json()["already_settled"] != expect_duplicate:
                resp.failure(f"Unexpected already_settled={resp.json()['already_settled']}")
            else:
                self.state.current_status = resp.json()["order_status"]


class CodFulfilmentJourney(_CheckoutJourney):
    """Checkout (COD) -> Processing -> Shipped -> Out For Delivery -> Delivered."""

    payment_method = "COD"

    @task
    def checkout(self):
        self._checkout()

    @task
    def processing(self):
        self._change_status({"status": "Processing"})

    @task
    def shipped(self):
        self._change_status(shipment_update("Shipped"))

    @task
    def out_for_delivery(self):
        self._change_status({"status": "Out_For_Delivery", "location": "Local hub"})

    @task
    def delivered(self):
        self._change_status({"status": "Delivered"})

    @task
    def view_order(self):
        self.client.get(f"/orders/{self.state.order_number}", name="GET /orders/{number}")
        self.interrupt()


class OnlinePaymentJourney(_CheckoutJourney):
    """Coupon preview -> Checkout (Online, SAVE20) -> Signed callback -> View order."""

    payment_method = "Online"
    coupon_code = "SAVE20"

    @task
    def preview_coupon(self):
        self.client.post("/checkout/coupon", json=coupon_preview_data(self.item_ids), name="POST /checkout/coupon")

    @task
    def checkout(self):
        self._checkout()

    @task
    def verify(self):
        self._verify()

    @task
    def view_order(self):
        self.client.get(f"/orders/{self.state.order_id}", name="GET /orders/{id}")
        self.interrupt()


class DuplicateCallbackJourney(_CheckoutJourney):
    """Checkout (Online) -> Callback -> Same callback again (acknowledged, no change)."""

    payment_method = "Online"

    @task
    def checkout(self):
        self._checkout()

    @task
    def verify(self):
        self._verify()

    @task
    def verify_again(self):
        self._verify(expect_duplicate=True)
        self.interrupt()


class CancellationJourney(_CheckoutJourney):
    """Checkout (COD) -> Cancelled (stock released)."""

    payment_method = "COD"

    @task
    def checkout(self):
        self._checkout()

    @task
    def cancel(self):
        self._change_status({"status": "Cancelled", "description": "Cancelled by load test"})
        self.interrupt()
