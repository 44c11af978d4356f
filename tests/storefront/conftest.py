import pytest
from protean.integrations.pytest import DomainFixture
from storefront.gateway.fake_order_service import FakeOrderService
from storefront.storage.fake_storage import InMemoryStorage


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


@pytest.fixture()
def storage():
    return InMemoryStorage()


@pytest.fixture()
def order_service():
    return FakeOrderService()


def _wire_order(order_id="ord-001", status="pending", restaurant="rest-001", total=31.5):
    """An order document as the order service returns it."""
    return {
        "_id": order_id,
        "restaurant": {"_id": restaurant, "name": "Luigi's"},
        "items": [
            {"meal": {"_id": "meal-001", "name": "Margherita"}, "price": 12.5, "quantity": 2},
            {"meal": "meal-002", "name": "Tiramisu", "price": 6.5, "quantity": 1},
        ],
        "deliveryAddress": {"street": "1 Main St", "city": "Springfield", "zipCode": "12345"},
        "status": status,
        "total": total,
        "createdAt": "2026-10-01T12:00:00+00:00",
        "paymentMethod": "card",
    }


@pytest.fixture()
def wire_order():
    return _wire_order
