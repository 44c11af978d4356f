"""FastAPI routes for the Storefront — cart, orders and notifications.

Every route works on the ``StorefrontSession`` held in ``app.state``.
Domain errors are mapped to HTTP responses by the handlers in ``app.py``.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from storefront.api.schemas import (
    AddCartItemRequest,
    AddCartItemResponse,
    CartResponse,
    CheckoutRequest,
    NotificationListResponse,
    OrderListResponse,
    OrderResponse,
    PushStatusRequest,
    ResolveConflictRequest,
    StatusResponse,
    TrackerResponse,
    UpdateCartQuantityRequest,
    UpdateOrderStatusRequest,
)
from storefront.cart.cart import Meal, RestaurantRef
from storefront.cart.store import CartStore
from storefront.session import StorefrontSession


def get_session(request: Request) -> StorefrontSession:
    return request.app.state.session


# ---------------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------------
def _cart_response(store: CartStore) -> CartResponse:
    snapshot = store.snapshot()
    totals = snapshot.totals
    return CartResponse(
        lines=list(snapshot.lines),
        restaurant=snapshot.restaurant,
        item_count=totals.item_count,
        subtotal=totals.subtotal,
        delivery_fee=totals.delivery_fee,
        tax=totals.tax,
        total=totals.total,
    )


def _order_response(order) -> OrderResponse:
    address = order.delivery_address
    return OrderResponse(
        order_id=str(order.id),
        restaurant_id=str(order.restaurant_id),
        status=order.status,
        total=order.total or 0.0,
        lines=[
            {
                "meal_id": str(line.meal_id),
                "name": line.name,
                "unit_price": line.unit_price,
                "quantity": line.quantity,
            }
            for line in order.lines
        ],
        delivery_address=address.to_dict() if address else None,
        payment_method=order.payment_method,
        created_at=order.created_at,
    )


def _to_meal(body) -> Meal:
    restaurant = body.restaurant
    return Meal(
        meal_id=body.meal_id,
        name=body.name,
        price=body.price,
        restaurant=RestaurantRef(**restaurant.model_dump()) if restaurant else None,
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(session: StorefrontSession = Depends(get_session)) -> CartResponse:
    return _cart_response(session.cart)


@cart_router.post("/items", response_model=AddCartItemResponse)
async def add_cart_item(body: AddCartItemRequest, session: StorefrontSession = Depends(get_session)):
    """Add a meal. A meal from another restaurant answers 409 until resolved."""
    result = session.cart.request_add_item(_to_meal(body.meal), body.quantity)
    if result.applied:
        return AddCartItemResponse(line_id=result.line_id)

    conflict = AddCartItemResponse(
        status="conflict",
        current_restaurant_id=result.pending.current_restaurant_id,
        requested_restaurant_id=result.pending.requested_restaurant_id,
    )
    return JSONResponse(status_code=409, content=conflict.model_dump())


@cart_router.post("/conflict", response_model=StatusResponse)
async def resolve_cart_conflict(
    body: ResolveConflictRequest, session: StorefrontSession = Depends(get_session)
) -> StatusResponse:
    """Accept (replace the cart) or decline the pending cross-restaurant add."""
    replaced = session.cart.resolve_conflict(body.accept)
    return StatusResponse(status="replaced" if replaced else "declined")


@cart_router.put("/items/{line_id}", response_model=CartResponse)
async def update_cart_item(
    line_id: str, body: UpdateCartQuantityRequest, session: StorefrontSession = Depends(get_session)
) -> CartResponse:
    session.cart.update_quantity(line_id, body.quantity)
    return _cart_response(session.cart)


@cart_router.delete("/items/{line_id}", response_model=CartResponse)
async def remove_cart_item(line_id: str, session: StorefrontSession = Depends(get_session)) -> CartResponse:
    session.cart.remove_item(line_id)
    return _cart_response(session.cart)


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(session: StorefrontSession = Depends(get_session)) -> CartResponse:
    session.cart.clear_cart()
    return _cart_response(session.cart)


@cart_router.post("/checkout", status_code=201, response_model=OrderResponse)
async def checkout(body: CheckoutRequest, session: StorefrontSession = Depends(get_session)) -> OrderResponse:
    """Place the cart as an order and start following its live status."""
    order = session.place_order(
        body.delivery_address.model_dump(),
        payment_method=body.payment_method,
        follow=True,
    )
    return _order_response(order)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=OrderListResponse)
async def list_my_orders(session: StorefrontSession = Depends(get_session)) -> OrderListResponse:
    orders = session.orders.list_my_orders()
    return _order_list(session, orders)


@order_router.get("/restaurant", response_model=OrderListResponse)
async def list_restaurant_orders(
    status: str | None = None, session: StorefrontSession = Depends(get_session)
) -> OrderListResponse:
    """Restaurant dashboard listing, optionally filtered by status."""
    orders = session.orders.list_restaurant_orders(status=status)
    return _order_list(session, orders)


def _order_list(session, orders) -> OrderListResponse:
    counts = session.orders.count_by_status(orders)
    return OrderListResponse(
        orders=[_order_response(order) for order in orders],
        counts={status.value: count for status, count in counts.items()},
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, session: StorefrontSession = Depends(get_session)) -> OrderResponse:
    return _order_response(session.orders.fetch_order(order_id))


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, session: StorefrontSession = Depends(get_session)) -> OrderResponse:
    return _order_response(session.orders.cancel_order(order_id))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def set_order_status(
    order_id: str, body: UpdateOrderStatusRequest, session: StorefrontSession = Depends(get_session)
) -> OrderResponse:
    """Administrative status set (restaurant dashboard)."""
    return _order_response(session.orders.set_order_status(order_id, body.status))


@order_router.get("/{order_id}/tracker", response_model=TrackerResponse)
async def get_order_tracker(order_id: str, session: StorefrontSession = Depends(get_session)) -> TrackerResponse:
    tracker = session.tracker(order_id)
    if tracker is None:
        raise HTTPException(status_code=404, detail="Cancelled orders cannot be tracked")
    return TrackerResponse(
        order_id=tracker.order_id,
        current_status=tracker.current_status.value,
        estimated_minutes=tracker.estimated_minutes,
        show_estimate=tracker.show_estimate,
        driver_en_route=tracker.driver_en_route,
        steps=[
            {
                "status": step.status.value,
                "label": step.label,
                "description": step.description,
                "completed": step.completed,
                "active": step.active,
            }
            for step in tracker.steps()
        ],
    )


# ---------------------------------------------------------------------------
# Notification Router
# ---------------------------------------------------------------------------
notification_router = APIRouter(prefix="/notifications", tags=["notifications"])


@notification_router.get("", response_model=NotificationListResponse)
async def list_notifications(session: StorefrontSession = Depends(get_session)) -> NotificationListResponse:
    """Notifications, newest first."""
    return NotificationListResponse(
        unread_count=session.feed.get_unread_count(),
        notifications=[
            {
                "notification_id": entry.notification_id,
                "notification_type": entry.notification_type,
                "title": entry.title,
                "message": entry.message,
                "timestamp": entry.timestamp,
                "read": entry.read,
                "related_order_id": entry.related_order_id,
            }
            for entry in session.feed.notifications()
        ],
    )


@notification_router.post("/read-all", response_model=StatusResponse)
async def mark_all_notifications_read(session: StorefrontSession = Depends(get_session)) -> StatusResponse:
    session.feed.mark_all_as_read()
    return StatusResponse()


@notification_router.post("/{notification_id}/read", response_model=StatusResponse)
async def mark_notification_read(
    notification_id: int, session: StorefrontSession = Depends(get_session)
) -> StatusResponse:
    session.feed.mark_as_read(notification_id)
    return StatusResponse()


@notification_router.delete("", response_model=StatusResponse)
async def clear_notifications(session: StorefrontSession = Depends(get_session)) -> StatusResponse:
    session.feed.clear_all()
    return StatusResponse(status="cleared")


@notification_router.post("/push", response_model=StatusResponse)
async def push_order_status(
    body: PushStatusRequest, session: StorefrontSession = Depends(get_session)
) -> StatusResponse:
    """Push handler for order status changes already accepted by the order service."""
    entry = session.feed.emit_status_change(body.order_id, body.status, trusted=True)
    return StatusResponse(status="applied" if entry is not None else "ignored")
