"""Health check route."""

from fastapi import APIRouter, Request

from bullboard.config import Settings
from bullboard.schemas import HealthResponse, RefreshStatus

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Liveness plus the outcome of the latest refresh cycle.

    Does not trigger discovery itself. Reports ``degraded`` when the last
    cycle failed.
    """
    settings: Settings = request.app.state.settings
    refresher = request.app.state.refresher
    last = refresher.last_result

    if last is None:
        refresh = RefreshStatus()
    else:
        refresh = RefreshStatus(
            outcome="ok" if last.ok else "failed",
            generation=last.generation,
            error=last.error,
            triggered_by=last.triggered_by,
        )

    return HealthResponse(
        status="degraded" if refresh.outcome == "failed" else "ok",
        version=settings.version,
        variant=settings.bull_version.value,
        prefix=settings.bull_prefix,
        queue_count=len(request.app.state.registry),
        last_refresh=refresh,
    )
