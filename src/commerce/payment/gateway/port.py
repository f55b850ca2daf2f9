"""Payment gateway port (abstract interface).

Adapters open a gateway-side payment intent for an order and verify the
signed callback the gateway sends once the shopper pays. Swapping between
FakeGateway (dev/test) and RazorpayGateway (production) needs no change in
domain or application code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class IntentResult:
    """Result of opening a payment intent."""

    success: bool
    intent_id: str | None = None
    amount_minor: int | None = None
    currency: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name: str = "gateway"
    key_id: str | None = None  # public key the storefront needs to open the payment sheet

    @abstractmethod
    def create_intent(
        self,
        amount: float,
        currency: str,
        receipt: str,
        notes: dict | None = None,
    ) -> IntentResult:
        """Open a payment intent for ``amount`` (major units)."""
        ...

    @abstractmethod
    def verify_signature(self, intent_id: str, settlement_id: str, signature: str) -> bool:
        """Check that a payment callback really came from the gateway."""
        ...
