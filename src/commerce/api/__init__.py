"""Commerce API package."""

from commerce.api.routes import checkout_router, order_router

__all__ = ["checkout_router", "order_router"]
