"""FastAPI routers package."""

from .health import router as health_router
from .itinerary import router as itinerary_router
from .metrics import router as metrics_router
from .schedule import router as schedule_router
from .update_request import router as update_request_router

__all__ = [
    "health_router",
    "itinerary_router",
    "metrics_router",
    "schedule_router",
    "update_request_router",
]
