"""Dashboard routes - discovered queues and their job counts."""

import asyncio
import logging
from typing import Annotated

import redis.asyncio as redis
from fastapi import APIRouter, Depends, HTTPException, Request
from redis.exceptions import RedisError

from bullboard.config import Settings
from bullboard.engines import QueueHandle
from bullboard.routes.depends import get_registry, refresh_queues
from bullboard.schemas import BoardResponse, JobCounts, QueueListResponse, QueueSummary
from bullboard.services.redis import create_client
from bullboard.services.refresh import RefreshResult
from bullboard.services.registry import QueueRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["queues"])

Refreshed = Annotated[RefreshResult, Depends(refresh_queues)]
Registry = Annotated[QueueRegistry, Depends(get_registry)]


async def _summarize(handle: QueueHandle, client: redis.Redis) -> QueueSummary:
    summary = QueueSummary(
        name=handle.name,
        variant=handle.variant.value,
        key_prefix=handle.key_prefix,
    )
    try:
        counts = await handle.get_job_counts(client)
        summary.counts = JobCounts.model_validate(counts)
        summary.is_paused = await handle.is_paused(client)
    except (RedisError, OSError) as exc:
        logger.warning("Could not read job counts for queue %s: %s", handle.name, exc)
    return summary


async def _summarize_all(
    handles: tuple[QueueHandle, ...], settings: Settings
) -> list[QueueSummary]:
    if not handles:
        return []
    client = create_client(
        settings.connection_params, timeout=settings.redis_connect_timeout
    )
    try:
        return list(await asyncio.gather(*(_summarize(h, client) for h in handles)))
    finally:
        await client.aclose()


@router.get("/", response_model=BoardResponse, dependencies=[Depends(refresh_queues)])
async def board_home(request: Request, registry: Registry) -> BoardResponse:
    """Board landing view. Queue discovery runs before every view."""
    settings: Settings = request.app.state.settings
    return BoardResponse(
        version=settings.version,
        variant=settings.bull_version.value,
        prefix=settings.bull_prefix,
        proxy_path=getattr(request.state, "proxy_path", None),
        queues_url=f"{settings.route_prefix}/api/queues",
        queue_count=len(registry),
    )


@router.get("/api/queues", response_model=QueueListResponse)
async def list_queues(
    request: Request, refreshed: Refreshed, registry: Registry
) -> QueueListResponse:
    """
    List discovered queues in display order.

    When discovery fails the last known queues are returned and
    ``refreshed`` is false.
    """
    handles = registry.snapshot()
    queues = await _summarize_all(handles, request.app.state.settings)
    return QueueListResponse(
        queues=queues,
        total=len(queues),
        generation=registry.generation,
        refreshed=refreshed.ok,
        error=refreshed.error,
    )


@router.get(
    "/api/queues/{name}",
    response_model=QueueSummary,
    dependencies=[Depends(refresh_queues)],
)
async def get_queue(name: str, request: Request, registry: Registry) -> QueueSummary:
    handle = registry.get(name)
    if handle is None:
        raise HTTPException(status_code=404, detail=f"Queue '{name}' not found")
    [summary] = await _summarize_all((handle,), request.app.state.settings)
    return summary
