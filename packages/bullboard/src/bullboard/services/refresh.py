"""Request-triggered refresh of the queue registry.

Every dashboard view request awaits one refresh cycle before rendering:

    connect -> scan -> extract -> build -> publish -> disconnect

Concurrent requests share the cycle already in flight instead of starting
their own. A cycle that fails leaves the registry as it was, so the page
renders the last known queues.
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from enum import StrEnum

import redis.asyncio as redis

from bullboard.engines import QueueEngine, build_handles
from bullboard.errors import AdapterConstructionFailed, StoreUnavailable
from bullboard.middleware import current_request_id
from bullboard.models import ConnectionParams
from bullboard.services.discovery import extract_queue_names, scan_queue_keys
from bullboard.services.redis import open_store
from bullboard.services.registry import QueueRegistry

logger = logging.getLogger(__name__)

StoreOpener = Callable[..., AbstractAsyncContextManager[redis.Redis]]


class RefreshState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    SCANNING = "scanning"
    EXTRACTING = "extracting"
    BUILDING = "building"
    PUBLISHING = "publishing"
    DISCONNECTING = "disconnecting"
    FAILED = "failed"


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of one refresh cycle."""

    generation: int
    queue_names: list[str] = field(default_factory=list)
    published: bool = False
    error: str | None = None
    triggered_by: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class QueueRefresher:
    """
    Runs refresh cycles against one registry.

    Example:
        refresher = QueueRefresher(registry, engine, params, prefix="bull")
        result = await refresher.refresh()
    """

    def __init__(
        self,
        registry: QueueRegistry,
        engine: QueueEngine,
        params: ConnectionParams,
        prefix: str,
        *,
        scan_count: int = 1000,
        connect_timeout: float | None = None,
        store_opener: StoreOpener = open_store,
    ) -> None:
        self.registry = registry
        self.engine = engine
        self.params = params
        self.prefix = prefix
        self.scan_count = scan_count
        self.connect_timeout = connect_timeout
        self._store_opener = store_opener
        self._state = RefreshState.IDLE
        self._generation = 0
        self._inflight: asyncio.Task[RefreshResult] | None = None
        self.last_result: RefreshResult | None = None

    @property
    def state(self) -> RefreshState:
        return self._state

    async def refresh(self) -> RefreshResult:
        """
        Run a refresh cycle, or join the one already running.

        Never raises for store or handle failures; inspect the returned
        result instead.
        """
        task = self._inflight
        if task is None or task.done():
            task = asyncio.create_task(self._run_cycle())
            self._inflight = task
            task.add_done_callback(self._clear_inflight)
        # Shield so a cancelled request does not cancel the shared cycle.
        return await asyncio.shield(task)

    def _clear_inflight(self, task: asyncio.Task[RefreshResult]) -> None:
        if self._inflight is task:
            self._inflight = None

    def _log_context(self, generation: int, **fields: object) -> dict[str, object]:
        return {"generation": generation, "prefix": self.prefix, **fields}

    async def _run_cycle(self) -> RefreshResult:
        self._generation += 1
        generation = self._generation
        # The cycle task inherits the context of the request that started it.
        triggered_by = current_request_id()
        try:
            result = await self._discover_and_publish(generation, triggered_by)
        except (StoreUnavailable, AdapterConstructionFailed) as exc:
            failed_in = self._state
            self._state = RefreshState.FAILED
            logger.exception(
                "Queue refresh failed while %s; keeping %d known queues",
                failed_in.value,
                len(self.registry),
                extra=self._log_context(
                    generation, queue_count=len(self.registry), state=failed_in.value
                ),
            )
            result = RefreshResult(
                generation=generation, error=str(exc), triggered_by=triggered_by
            )
        finally:
            self._state = RefreshState.IDLE
        self.last_result = result
        return result

    async def _discover_and_publish(
        self, generation: int, triggered_by: str | None
    ) -> RefreshResult:
        self._state = RefreshState.CONNECTING
        async with self._store_opener(self.params, timeout=self.connect_timeout) as client:
            self._state = RefreshState.SCANNING
            keys = await scan_queue_keys(client, self.prefix, count=self.scan_count)

            self._state = RefreshState.EXTRACTING
            names = extract_queue_names(keys)

            self._state = RefreshState.BUILDING
            handles = build_handles(self.engine, names)

            self._state = RefreshState.PUBLISHING
            published = self.registry.publish(handles, generation=generation)

            self._state = RefreshState.DISCONNECTING

        logger.debug(
            "Refresh found %d queues",
            len(names),
            extra=self._log_context(generation, queue_count=len(names)),
        )
        return RefreshResult(
            generation=generation,
            queue_names=names,
            published=published,
            triggered_by=triggered_by,
        )
