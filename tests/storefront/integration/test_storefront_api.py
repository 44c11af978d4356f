"""Integration tests for the Storefront API endpoints via TestClient."""

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from storefront.api import cart_router, notification_router, order_router
from storefront.api.errors import register_error_handlers
from storefront.domain import storefront
from storefront.feed.sources.queue_source import QueueStatusSource
from storefront.gateway.fake_order_service import FakeOrderService
from storefront.session import StorefrontSession
from storefront.storage.fake_storage import InMemoryStorage

ADDRESS = {"street": "1 Main St", "city": "Springfield", "zip_code": "12345"}


def _meal(meal_id, price, restaurant_id="rest-001", delivery_fee=1.99):
    return {
        "meal_id": meal_id,
        "name": meal_id,
        "price": price,
        "restaurant": {"restaurant_id": restaurant_id, "name": restaurant_id, "delivery_fee": delivery_fee},
    }


@pytest.fixture()
def session():
    session = StorefrontSession(InMemoryStorage(), FakeOrderService(), QueueStatusSource())
    session.start()
    return session


@pytest.fixture()
def client(session):
    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with storefront.domain_context():
            return await call_next(request)

    register_error_handlers(app)
    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(notification_router)
    app.state.session = session

    with TestClient(app) as test_client:
        yield test_client
        test_client.portal.call(session.close)


def _add(client, meal_id="meal-a", price=2.0, quantity=1, **kwargs):
    return client.post("/cart/items", json={"meal": _meal(meal_id, price, **kwargs), "quantity": quantity})


class TestCartEndpoints:
    def test_add_and_read_cart(self, client):
        assert _add(client, "meal-a", 2.0, quantity=2).status_code == 200
        assert _add(client, "meal-b", 3.5).status_code == 200

        body = client.get("/cart").json()
        assert body["item_count"] == 3
        assert body["restaurant"]["restaurant_id"] == "rest-001"
        assert body["subtotal"] == "7.50"
        assert body["tax"] == "0.60"
        assert body["total"] == "10.09"

    def test_conflict_then_accept(self, client):
        _add(client, "meal-a", 10.0, restaurant_id="R1")
        response = _add(client, "meal-c", 7.0, restaurant_id="R2")
        assert response.status_code == 409
        assert response.json()["current_restaurant_id"] == "R1"
        assert response.json()["requested_restaurant_id"] == "R2"

        response = client.post("/cart/conflict", json={"accept": True})
        assert response.json() == {"status": "replaced"}

        body = client.get("/cart").json()
        assert [line["meal_id"] for line in body["lines"]] == ["meal-c"]
        assert body["restaurant"]["restaurant_id"] == "R2"

    def test_resolve_without_conflict(self, client):
        assert client.post("/cart/conflict", json={"accept": True}).status_code == 409

    def test_update_and_remove_lines(self, client):
        line_id = _add(client, "meal-a", 2.0).json()["line_id"]

        body = client.put(f"/cart/items/{line_id}", json={"quantity": 4}).json()
        assert body["item_count"] == 4

        body = client.delete(f"/cart/items/{line_id}").json()
        assert body["lines"] == []
        assert body["restaurant"] is None
        assert body["delivery_fee"] == "0.00"

    def test_clear_cart(self, client):
        _add(client)
        assert client.delete("/cart").json()["item_count"] == 0

    def test_invalid_quantity(self, client):
        assert _add(client, quantity=0).status_code == 422


class TestCheckoutAndOrders:
    def test_checkout_creates_order(self, client, session):
        _add(client, "meal-a", 2.0, quantity=2)
        response = client.post("/cart/checkout", json={"delivery_address": ADDRESS, "payment_method": "card"})

        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "pending"
        assert order["total"] == pytest.approx(6.31)
        assert client.get("/cart").json()["lines"] == []
        assert order["order_id"] in session.runner.following

    def test_checkout_failure_keeps_cart(self, client, session):
        _add(client)
        session.order_service.configure(should_succeed=False)

        response = client.post("/cart/checkout", json={"delivery_address": ADDRESS})
        assert response.status_code == 502
        assert client.get("/cart").json()["item_count"] == 1

    def test_empty_cart_checkout(self, client):
        assert client.post("/cart/checkout", json={"delivery_address": ADDRESS}).status_code == 422

    def test_order_lifecycle_and_tracker(self, client):
        _add(client)
        order_id = client.post("/cart/checkout", json={"delivery_address": ADDRESS}).json()["order_id"]

        tracker = client.get(f"/orders/{order_id}/tracker").json()
        assert tracker["current_status"] == "pending"
        assert tracker["estimated_minutes"] == 30

        response = client.put(f"/orders/{order_id}/status", json={"status": "preparing"})
        assert response.json()["status"] == "preparing"

        tracker = client.get(f"/orders/{order_id}/tracker").json()
        assert tracker["current_status"] == "preparing"
        assert tracker["estimated_minutes"] == 25
        assert [step["completed"] for step in tracker["steps"]] == [True, True, True, False, False]

    def test_cancel_only_while_pending(self, client):
        _add(client)
        order_id = client.post("/cart/checkout", json={"delivery_address": ADDRESS}).json()["order_id"]

        assert client.post(f"/orders/{order_id}/cancel").json()["status"] == "cancelled"
        assert client.post(f"/orders/{order_id}/cancel").status_code == 422
        assert client.get(f"/orders/{order_id}/tracker").status_code == 404

    def test_unknown_status_is_rejected(self, client):
        _add(client)
        order_id = client.post("/cart/checkout", json={"delivery_address": ADDRESS}).json()["order_id"]
        assert client.put(f"/orders/{order_id}/status", json={"status": "ready"}).status_code == 422

    def test_missing_order(self, client):
        assert client.get("/orders/ord-missing").status_code == 404

    def test_order_listings(self, client):
        _add(client)
        client.post("/cart/checkout", json={"delivery_address": ADDRESS})

        mine = client.get("/orders").json()
        assert len(mine["orders"]) == 1
        assert mine["counts"]["pending"] == 1

        restaurant = client.get("/orders/restaurant", params={"status": "delivered"}).json()
        assert restaurant["orders"] == []


class TestNotificationEndpoints:
    def test_push_and_read_notifications(self, client):
        _add(client)
        order_id = client.post("/cart/checkout", json={"delivery_address": ADDRESS}).json()["order_id"]

        response = client.post("/notifications/push", json={"order_id": order_id, "status": "confirmed"})
        assert response.json() == {"status": "applied"}

        body = client.get("/notifications").json()
        assert body["unread_count"] == 2
        assert body["notifications"][0]["message"] == "Your order has been confirmed!"
        assert body["notifications"][1]["title"] == "Order Placed"

        first_id = body["notifications"][0]["notification_id"]
        client.post(f"/notifications/{first_id}/read")
        client.post(f"/notifications/{first_id}/read")
        assert client.get("/notifications").json()["unread_count"] == 1

        client.post("/notifications/read-all")
        assert client.get("/notifications").json()["unread_count"] == 0

        client.delete("/notifications")
        assert client.get("/notifications").json()["notifications"] == []

    def test_push_repeated_status_is_ignored(self, client):
        client.post("/notifications/push", json={"order_id": "ord-1", "status": "confirmed"})
        response = client.post("/notifications/push", json={"order_id": "ord-1", "status": "confirmed"})
        assert response.json() == {"status": "ignored"}

    def test_push_out_of_terminal_state_is_rejected(self, client):
        client.post("/notifications/push", json={"order_id": "ord-1", "status": "delivered"})
        response = client.post("/notifications/push", json={"order_id": "ord-1", "status": "preparing"})
        assert response.status_code == 422
