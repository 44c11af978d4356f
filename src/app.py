"""DishDash Storefront FastAPI application.

Serves one storefront session: the cart, the customer's orders, the
restaurant dashboard status controls and the live notification feed.
Every request runs inside the storefront domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.errors import register_error_handlers
from storefront.domain import storefront
from storefront.session import StorefrontSession

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay; STOREFRONT_* variables pick the
# storage, order service and status source adapters.
storefront.init()


@asynccontextmanager
async def lifespan(app: FastAPI):
    with storefront.domain_context():
        session = StorefrontSession.from_environment()
        session.start()
    app.state.session = session
    yield
    with storefront.domain_context():
        await session.close()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="DishDash Storefront API",
    description="Food delivery storefront — cart, orders and live order tracking",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context for each request."""
    with storefront.domain_context():
        response = await call_next(request)
    return response


register_error_handlers(app)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.api import cart_router, notification_router, order_router  # noqa: E402

app.include_router(cart_router)
app.include_router(order_router)
app.include_router(notification_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health(request: Request):
    session = request.app.state.session
    return JSONResponse(
        content={
            "status": "ok",
            "domain": storefront.name,
            "feed_connected": session.feed.connected,
        }
    )
