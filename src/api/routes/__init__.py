"""API route modules."""

from src.api.routes.allocations import router as allocations_router
from src.api.routes.health import router as health_router
from src.api.routes.lots import router as lots_router
from src.api.routes.materials import router as materials_router
from src.api.routes.purchase_orders import router as purchase_orders_router
from src.api.routes.quotations import router as quotations_router
from src.api.routes.work_orders import router as work_orders_router

__all__ = [
    "health_router",
    "materials_router",
    "lots_router",
    "purchase_orders_router",
    "quotations_router",
    "work_orders_router",
    "allocations_router",
]
