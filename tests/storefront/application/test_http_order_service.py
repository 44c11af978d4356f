"""Tests for HttpOrderService against a mocked order REST API."""

import json

import httpx
import pytest
from storefront.gateway.http_order_service import HttpOrderService
from storefront.gateway.order_service_port import RemoteAPIFailure
from storefront.order.status import OrderStatus


def _service(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://api.test/api")
    return HttpOrderService(client=client)


class TestCreateOrder:
    def test_posts_camel_case_body(self, wire_order):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=wire_order("ord-9"))

        order = _service(handler).create_order(
            "rest-001",
            [{"meal_id": "meal-001", "name": "Margherita", "unit_price": 12.5, "quantity": 2}],
            {"street": "1 Main St", "city": "Springfield", "zip_code": "12345"},
            payment_method="card",
            total=29.99,
        )

        assert seen["method"] == "POST"
        assert seen["path"] == "/api/orders"
        assert seen["body"]["restaurant"] == "rest-001"
        assert seen["body"]["items"] == [{"meal": "meal-001", "name": "Margherita", "price": 12.5, "quantity": 2}]
        assert seen["body"]["deliveryAddress"]["zipCode"] == "12345"
        assert seen["body"]["paymentMethod"] == "card"
        assert order.id == "ord-9"


class TestReads:
    def test_fetch_order_unwraps_embedded_documents(self, wire_order):
        service = _service(lambda request: httpx.Response(200, json=wire_order("ord-1", status="preparing")))
        order = service.fetch_order("ord-1")

        assert order.restaurant_id == "rest-001"
        assert order.current_status == OrderStatus.PREPARING
        assert [line.name for line in order.lines] == ["Margherita", "Tiramisu"]
        assert order.delivery_address.zip_code == "12345"

    def test_list_endpoints(self, wire_order):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200, json=[wire_order("ord-1"), wire_order("ord-2")])

        service = _service(handler)
        assert len(service.list_my_orders()) == 2
        assert len(service.list_restaurant_orders()) == 2
        assert paths == ["/api/orders/my-orders", "/api/orders/restaurant-orders"]

    def test_update_status_puts_status(self, wire_order):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=wire_order("ord-1", status="confirmed"))

        order = _service(handler).update_order_status("ord-1", "confirmed")
        assert seen == {"path": "/api/orders/ord-1/status", "body": {"status": "confirmed"}}
        assert order.current_status == OrderStatus.CONFIRMED


class TestFailures:
    def test_error_status_becomes_remote_failure(self):
        service = _service(lambda request: httpx.Response(404, json={"message": "Order not found"}))
        with pytest.raises(RemoteAPIFailure) as exc:
            service.fetch_order("ord-404")
        assert exc.value.status_code == 404

    def test_transport_error_becomes_remote_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RemoteAPIFailure) as exc:
            _service(handler).fetch_order("ord-1")
        assert exc.value.status_code is None

    def test_non_json_body(self):
        service = _service(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(RemoteAPIFailure):
            service.fetch_order("ord-1")

    def test_malformed_order(self):
        service = _service(lambda request: httpx.Response(200, json={"status": "pending"}))
        with pytest.raises(RemoteAPIFailure):
            service.fetch_order("ord-1")

    def test_requires_base_url(self):
        with pytest.raises(ValueError):
            HttpOrderService()
