"""FastAPI dependencies shared by board routes."""

from fastapi import HTTPException, Request

from bullboard.services.refresh import QueueRefresher, RefreshResult
from bullboard.services.registry import QueueRegistry


def get_registry(request: Request) -> QueueRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(status_code=503, detail="Queue registry not initialised")
    return registry


def get_refresher(request: Request) -> QueueRefresher:
    refresher = getattr(request.app.state, "refresher", None)
    if refresher is None:
        raise HTTPException(status_code=503, detail="Queue refresher not initialised")
    return refresher


async def refresh_queues(request: Request) -> RefreshResult:
    """Re-discover queues before a dashboard view is rendered."""
    return await get_refresher(request).refresh()
