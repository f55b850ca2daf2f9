"""Razorpay gateway adapter.

Opens Razorpay orders over the REST API (amounts in paise) and verifies
checkout callbacks with the key secret.
"""

import requests
import structlog

from commerce.payment.gateway.port import IntentResult, PaymentGateway
from commerce.payment.signature import signature_matches
from commerce.pricing.money import to_minor_units

logger = structlog.get_logger(__name__)

DEFAULT_API_URL = "https://api.razorpay.com/v1"


class RazorpayGateway(PaymentGateway):
    name = "razorpay"

    def __init__(self, key_id: str, key_secret: str, api_url: str = DEFAULT_API_URL, timeout: float = 10.0) -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.auth = (key_id, key_secret)

    def create_intent(
        self,
        amount: float,
        currency: str,
        receipt: str,
        notes: dict | None = None,
    ) -> IntentResult:
        payload = {
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        try:
            response = self.session.post(f"{self.api_url}/orders", json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("razorpay_order_failed", receipt=receipt, error=str(exc))
            return IntentResult(success=False, failure_reason=str(exc))

        body = response.json()
        return IntentResult(
            success=True,
            intent_id=body["id"],
            amount_minor=body.get("amount", payload["amount"]),
            currency=body.get("currency", currency),
        )

    def verify_signature(self, intent_id: str, settlement_id: str, signature: str) -> bool:
        return signature_matches(self.key_secret, intent_id, settlement_id, signature)
