import pytest
from commerce.api import checkout_router, order_router
from commerce.api.errors import register_commerce_error_handlers
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(checkout_router)
    app.include_router(order_router)
    register_exception_handlers(app)
    register_commerce_error_handlers(app)
    return TestClient(app)
