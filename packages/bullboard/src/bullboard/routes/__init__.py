"""Board routes."""

from bullboard.routes.health import router as health_router
from bullboard.routes.queues import router as queues_router

__all__ = [
    "health_router",
    "queues_router",
]
