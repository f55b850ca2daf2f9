"""Commerce FastAPI application.

Processes checkout, payment callbacks and admin order updates
synchronously over HTTP, each request inside the commerce domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the config overlay in src/commerce/domain.toml:
#   - unset / "test" → in-memory database, sync event processing
#   - "production"   → PostgreSQL
from commerce.domain import commerce  # noqa: E402
from commerce.utils.logging import clear_checkout_context, configure_logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

configure_logging()
commerce.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Commerce API",
    description="Checkout-to-order commitment: pricing, coupons, shipping, payment and order lifecycle",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the commerce domain context for each request."""
    with commerce.domain_context():
        try:
            return await call_next(request)
        finally:
            clear_checkout_context()


# ---------------------------------------------------------------------------
# Routers and error mapping
# ---------------------------------------------------------------------------
from commerce.api import checkout_router, order_router  # noqa: E402
from commerce.api.errors import register_commerce_error_handlers  # noqa: E402

app.include_router(checkout_router)
app.include_router(order_router)

register_exception_handlers(app)
register_commerce_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": commerce.name})
