"""Fake order service adapter — keeps orders in memory for testing."""

from datetime import UTC, datetime
from uuid import uuid4

from storefront.gateway.order_service_port import OrderServicePort, RemoteAPIFailure
from storefront.gateway.schemas import CreateOrderRequest, OrderPayload


class FakeOrderService(OrderServicePort):
    """Order service that stores wire-format orders in memory and records calls."""

    def __init__(self):
        self.orders: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.should_succeed = True
        self.failure_status = 503

    def configure(self, should_succeed: bool = True, failure_status: int = 503):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_status = failure_status

    def seed(self, payload: dict):
        """Store a wire-format order (as the service would return it)."""
        self.orders[payload["_id"]] = payload
        return payload["_id"]

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------
    def create_order(self, restaurant_id, lines, delivery_address, payment_method=None, total=None):
        self._record("create_order", restaurant_id)
        body = CreateOrderRequest.from_lines(restaurant_id, lines, delivery_address, payment_method, total)
        payload = body.model_dump(by_alias=True, exclude_none=True)
        payload.update(
            {
                "_id": f"ord-{uuid4().hex[:12]}",
                "status": "pending",
                "total": total or 0.0,
                "createdAt": datetime.now(UTC).isoformat(),
            }
        )
        self.seed(payload)
        return OrderPayload.model_validate(payload).to_order()

    def fetch_order(self, order_id):
        self._record("fetch_order", order_id)
        return OrderPayload.model_validate(self._get(order_id)).to_order()

    def update_order_status(self, order_id, status):
        self._record("update_order_status", order_id, status)
        payload = self._get(order_id)
        payload["status"] = status
        return OrderPayload.model_validate(payload).to_order()

    def list_my_orders(self):
        self._record("list_my_orders")
        return [OrderPayload.model_validate(p).to_order() for p in self.orders.values()]

    def list_restaurant_orders(self):
        self._record("list_restaurant_orders")
        return [OrderPayload.model_validate(p).to_order() for p in self.orders.values()]

    def reset(self):
        """Clear stored orders and recorded calls (useful between tests)."""
        self.orders.clear()
        self.calls.clear()
        self.should_succeed = True
        self.failure_status = 503

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _record(self, *call):
        self.calls.append(call)
        if not self.should_succeed:
            raise RemoteAPIFailure(f"Order service returned {self.failure_status}", status_code=self.failure_status)

    def _get(self, order_id):
        try:
            return self.orders[order_id]
        except KeyError:
            raise RemoteAPIFailure(f"Order {order_id} not found", status_code=404) from None
