"""Storefront API package."""

from storefront.api.routes import cart_router, notification_router, order_router

__all__ = ["cart_router", "order_router", "notification_router"]
