"""Order service port — abstract interface to the external order REST API."""

from abc import ABC, abstractmethod


class RemoteAPIFailure(Exception):
    """The order service could not be reached or rejected the request."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class OrderServicePort(ABC):
    """Operations the storefront needs from the order service.

    Every method returns Order aggregates built from the service's
    response and raises RemoteAPIFailure on transport or server errors.
    """

    @abstractmethod
    def create_order(
        self,
        restaurant_id: str,
        lines: list[dict],
        delivery_address: dict,
        payment_method: str | None = None,
        total: float | None = None,
    ):
        """Place an order.

        Args:
            lines: List of dicts with meal_id, name, unit_price, quantity.
            delivery_address: Dict with street, city, state, zip_code, instructions.
        """
        ...

    @abstractmethod
    def fetch_order(self, order_id: str): ...

    @abstractmethod
    def update_order_status(self, order_id: str, status: str): ...

    @abstractmethod
    def list_my_orders(self) -> list: ...

    @abstractmethod
    def list_restaurant_orders(self) -> list:
        """Orders received by the signed-in restaurant operator."""
        ...
