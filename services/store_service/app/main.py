"""FastAPI application for the Store Service."""

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.store_service.exceptions import StoreError
from services.store_service.routers import (
    admin_orders_router,
    checkout_router,
    maps_router,
    orders_router,
    payments_router,
)


def create_app() -> FastAPI:
    """Create and configure the Store Service FastAPI app."""
    app = FastAPI(
        title="Grocery Store Service",
        version="0.1.0",
        description="Checkout, delivery pricing, order lifecycle and payments.",
    )

    # Add rate limiter state to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Domain errors render as {"detail", "code", ...}
    add_exception_handlers(app, StoreError)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "store"}

    # Customer-facing routes
    app.include_router(checkout_router, prefix="/store")
    app.include_router(orders_router, prefix="/store")
    app.include_router(payments_router, prefix="/store")
    app.include_router(maps_router, prefix="/store")

    # Admin routes
    app.include_router(admin_orders_router, prefix="/admin/store")

    return app


app = create_app()
