import threading
from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def commerce_bed():
    from commerce.domain import commerce

    bed = DomainFixture(commerce)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(commerce_bed):
    from commerce.catalog import reset_catalog
    from commerce.payment.gateway import reset_gateway
    from commerce.shipping import reset_courier_rates

    with commerce_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_catalog()
    reset_courier_rates()


@pytest.fixture()
def gateway():
    from commerce.payment.gateway import set_gateway
    from commerce.payment.gateway.fake_adapter import FakeGateway

    fake = FakeGateway(secret="test-secret")
    set_gateway(fake)
    return fake


@pytest.fixture()
def address():
    return {
        "full_name": "Asha Rao",
        "phone": "9876543210",
        "line1": "12 MG Road",
        "line2": None,
        "landmark": "Near Metro",
        "city": "Bengaluru",
        "state": "Karnataka",
        "postal_code": "560001",
        "country": "India",
    }


@pytest.fixture()
def make_item():
    """Persist a catalog item and return it."""
    from commerce.catalog.item import CatalogItem

    def _make(name="Graphics Card", price=50000.0, stock_quantity=5, **kwargs):
        item = CatalogItem.create(name=name, price=price, stock_quantity=stock_quantity, **kwargs)
        current_domain.repository_for(CatalogItem).add(item)
        return item

    return _make


@pytest.fixture()
def make_coupon():
    """Persist a coupon and return it."""
    from commerce.coupon.coupon import Coupon, DiscountKind

    def _make(code="SAVE20", discount_kind=DiscountKind.PERCENTAGE.value, discount_value=20, **kwargs):
        coupon = Coupon.create(code, discount_kind, discount_value, **kwargs)
        current_domain.repository_for(Coupon).add(coupon)
        return coupon

    return _make


@pytest.fixture()
def save20(make_coupon):
    """20% off, capped at 5,000, on orders of 10,000 or more."""
    return make_coupon(
        "SAVE20",
        min_order_amount=10000.0,
        max_discount=5000.0,
        usage_limit=100,
        per_user_limit=1,
        ends_at=datetime.now(UTC) + timedelta(days=30),
    )


@pytest.fixture()
def rendezvous(monkeypatch):
    """Hold each thread after its first call to ``cls.<name>`` until ``parties`` threads get there.

    Forces two requests to interleave: both have read and mutated their own copy
    of an aggregate before either of them commits.
    """

    def _install(cls, name, parties=2):
        barrier = threading.Barrier(parties, timeout=5)
        original = getattr(cls, name)
        seen = threading.local()

        def _wrapper(self, *args, **kwargs):
            result = original(self, *args, **kwargs)
            if not getattr(seen, "waited", False):
                seen.waited = True
                barrier.wait()
            return result

        monkeypatch.setattr(cls, name, _wrapper)

    return _install


@pytest.fixture()
def run_concurrently():
    """Run each callable on its own thread and domain context; return ``(results, errors)``."""
    from commerce.domain import commerce

    def _run(*calls):
        results, errors = [], []

        def _target(call):
            with commerce.domain_context():
                try:
                    results.append(call())
                except Exception as exc:
                    errors.append(exc)

        threads = [threading.Thread(target=_target, args=(call,)) for call in calls]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)
        return results, errors

    return _run
