"""Response payloads served by the board."""

from typing import Literal

from pydantic import BaseModel, Field


class JobCounts(BaseModel):
    """Jobs per state. States a given engine does not track stay at 0."""

    wait: int = 0
    active: int = 0
    paused: int = 0
    delayed: int = 0
    prioritized: int = 0
    waiting_children: int = Field(default=0, alias="waiting-children")
    completed: int = 0
    failed: int = 0

    model_config = {"populate_by_name": True}


class QueueSummary(BaseModel):
    """One discovered queue."""

    name: str
    variant: str
    key_prefix: str
    counts: JobCounts | None = None
    is_paused: bool | None = None


class QueueListResponse(BaseModel):
    queues: list[QueueSummary]
    total: int
    generation: int
    refreshed: bool = True
    error: str | None = None


class BoardResponse(BaseModel):
    """Board landing payload."""

    name: str = "bullboard"
    version: str
    variant: str
    prefix: str
    proxy_path: str | None = None
    queues_url: str
    queue_count: int


class RefreshStatus(BaseModel):
    outcome: Literal["ok", "failed", "never"] = "never"
    generation: int = 0
    error: str | None = None
    triggered_by: str | None = None


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"] = "ok"
    version: str
    variant: str
    prefix: str
    queue_count: int = 0
    last_refresh: RefreshStatus = Field(default_factory=RefreshStatus)
