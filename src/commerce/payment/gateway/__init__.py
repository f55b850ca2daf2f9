"""Payment gateway factory.

PAYMENT_GATEWAY selects the adapter:
- "fake" (default): FakeGateway, for development and testing; refused when
  PROTEAN_ENV is "production"
- "razorpay": RazorpayGateway, credentials from RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET
"""

import os

from commerce.payment.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def _build_gateway() -> PaymentGateway:
    adapter = os.getenv("PAYMENT_GATEWAY", "fake").lower()
    if adapter == "fake":
        if os.getenv("PROTEAN_ENV", "").lower() == "production":
            raise ValueError("The fake payment gateway cannot be used in production")
        from commerce.payment.gateway.fake_adapter import FakeGateway

        return FakeGateway(secret=os.getenv("FAKE_GATEWAY_SECRET", "test-secret"))
    if adapter == "razorpay":
        from commerce.payment.gateway.razorpay_adapter import DEFAULT_API_URL, RazorpayGateway

        return RazorpayGateway(
            key_id=os.environ["RAZORPAY_KEY_ID"],
            key_secret=os.environ["RAZORPAY_KEY_SECRET"],
            api_url=os.getenv("RAZORPAY_API_URL", DEFAULT_API_URL),
        )
    raise ValueError(f"Unknown payment gateway: {adapter}")


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building it from the environment on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
