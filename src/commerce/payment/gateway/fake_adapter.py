"""Configurable fake payment gateway for development and testing.

Simulates a gateway without external calls. Intents can be configured to
succeed or fail at runtime, and ``sign()`` produces the signature the real
gateway would send, so callbacks can be exercised end to end.
"""

from uuid import uuid4

from commerce.payment.gateway.port import IntentResult, PaymentGateway
from commerce.payment.signature import compute_signature, signature_matches
from commerce.pricing.money import to_minor_units


class FakeGateway(PaymentGateway):
    name = "fake"

    def __init__(self, secret: str = "test-secret", key_id: str = "fake_key") -> None:
        self.secret = secret
        self.key_id = key_id
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_intent(
        self,
        amount: float,
        currency: str,
        receipt: str,
        notes: dict | None = None,
    ) -> IntentResult:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            }
        )

        if not self.should_succeed:
            return IntentResult(success=False, failure_reason=self.failure_reason)
        return IntentResult(
            success=True,
            intent_id=f"fake_intent_{uuid4().hex[:14]}",
            amount_minor=to_minor_units(amount),
            currency=currency,
        )

    def sign(self, intent_id: str, settlement_id: str) -> str:
        return compute_signature(self.secret, intent_id, settlement_id)

    def verify_signature(self, intent_id: str, settlement_id: str, signature: str) -> bool:
        self.calls.append({"method": "verify_signature", "intent_id": intent_id, "settlement_id": settlement_id})
        return signature_matches(self.secret, intent_id, settlement_id, signature)
