"""Store service routers package."""

from services.store_service.routers.admin_orders import router as admin_orders_router
from services.store_service.routers.checkout import router as checkout_router
from services.store_service.routers.maps import router as maps_router
from services.store_service.routers.orders import router as orders_router
from services.store_service.routers.payments import router as payments_router

__all__ = [
    "admin_orders_router",
    "checkout_router",
    "maps_router",
    "orders_router",
    "payments_router",
]
