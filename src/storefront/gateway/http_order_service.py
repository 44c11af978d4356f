"""HTTP order service adapter — talks JSON to the external order REST API via httpx."""

import httpx
import structlog
from pydantic import ValidationError as PayloadError

from storefront.gateway.order_service_port import OrderServicePort, RemoteAPIFailure
from storefront.gateway.schemas import CreateOrderRequest, OrderPayload, UpdateStatusRequest

logger = structlog.get_logger(__name__)


class HttpOrderService(OrderServicePort):
    """Order service adapter backed by an ``httpx.Client``.

    Failures are surfaced as RemoteAPIFailure and never retried here; the
    UI decides whether to offer a retry.
    """

    def __init__(self, base_url: str | None = None, token: str | None = None, client=None, timeout: float = 10.0):
        if client is None:
            if not base_url:
                raise ValueError("An API base URL is required")
            headers = {"Authorization": f"Bearer {token}"} if token else {}
            client = httpx.Client(base_url=base_url, headers=headers, timeout=timeout)
        self._client = client

    def close(self):
        self._client.close()

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------
    def create_order(self, restaurant_id, lines, delivery_address, payment_method=None, total=None):
        body = CreateOrderRequest.from_lines(restaurant_id, lines, delivery_address, payment_method, total)
        data = self._request("POST", "/orders", json=body.model_dump(by_alias=True, exclude_none=True))
        return self._to_order(data)

    def fetch_order(self, order_id):
        return self._to_order(self._request("GET", f"/orders/{order_id}"))

    def update_order_status(self, order_id, status):
        body = UpdateStatusRequest(status=status)
        return self._to_order(self._request("PUT", f"/orders/{order_id}/status", json=body.model_dump()))

    def list_my_orders(self):
        return [self._to_order(item) for item in self._request("GET", "/orders/my-orders")]

    def list_restaurant_orders(self):
        return [self._to_order(item) for item in self._request("GET", "/orders/restaurant-orders")]

    # -------------------------------------------------------------------
    # Transport helpers
    # -------------------------------------------------------------------
    def _request(self, method, path, **kwargs):
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            logger.warning("Order service rejected request", method=method, path=path, status_code=status_code)
            raise RemoteAPIFailure(
                f"Order service returned {status_code} for {method} {path}",
                status_code=status_code,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Order service unreachable", method=method, path=path, error=str(exc))
            raise RemoteAPIFailure(f"Order service unreachable: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise RemoteAPIFailure(f"Order service sent a non-JSON body for {method} {path}") from exc

    @staticmethod
    def _to_order(data):
        try:
            return OrderPayload.model_validate(data).to_order()
        except PayloadError as exc:
            raise RemoteAPIFailure(f"Order service sent a malformed order: {exc.error_count()} error(s)") from exc
