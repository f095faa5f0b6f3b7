"""Queue engines and the monitoring handles they build.

Two engines are supported, selected by ``BULL_VERSION``:

- ``BULL``: legacy Bull (v3/v4). Handles are built from the full Redis
  connection bundle; Bull derives its key prefix itself (``bull``).
- ``BULLMQ``: BullMQ. Handles are built from connection options that carry
  the configured key prefix explicitly.

New engines are added by subclassing ``QueueEngine`` and registering the
class in ``ENGINES``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, ClassVar

import redis.asyncio as redis

from bullboard.errors import AdapterConstructionFailed
from bullboard.models import ConnectionParams, EngineVariant

logger = logging.getLogger(__name__)

BULL_DEFAULT_PREFIX = "bull"


def _client_from_bundle(
    connection: dict[str, Any], timeout: float | None = None
) -> redis.Redis:
    return redis.Redis(
        host=connection.get("host", "localhost"),
        port=connection.get("port", 6379),
        db=connection.get("db", 0),
        password=connection.get("password"),
        ssl=bool(connection.get("tls", False)),
        socket_connect_timeout=timeout,
        socket_timeout=timeout,
        decode_responses=True,
    )


class QueueHandle(ABC):
    """Monitoring handle bound to one queue.

    Handles are cheap to build: no connection is opened until a read is
    requested. Reads accept an existing client, otherwise a short-lived
    client is created from the handle's connection bundle.
    """

    variant: ClassVar[EngineVariant]

    # Job states stored as Redis lists / sorted sets, in display order.
    LIST_STATES: ClassVar[tuple[str, ...]] = ("wait", "active", "paused")
    ZSET_STATES: ClassVar[tuple[str, ...]] = ("delayed", "completed", "failed")

    def __init__(
        self,
        name: str,
        options: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> None:
        if not name:
            raise ValueError("queue name must not be empty")
        self.name = name
        self.options = options
        self.timeout = timeout

    @property
    @abstractmethod
    def connection(self) -> dict[str, Any]:
        """Redis connection bundle used by this handle."""

    @property
    @abstractmethod
    def key_prefix(self) -> str:
        """Namespace prefix of this queue's Redis keys."""

    def key(self, suffix: str) -> str:
        return f"{self.key_prefix}:{self.name}:{suffix}"

    async def get_job_counts(self, client: redis.Redis | None = None) -> dict[str, int]:
        """Number of jobs in each state."""
        if client is not None:
            return await self._read_job_counts(client)
        async with _client_from_bundle(self.connection, self.timeout) as own_client:
            return await self._read_job_counts(own_client)

    async def is_paused(self, client: redis.Redis | None = None) -> bool:
        if client is not None:
            return await self._read_paused(client)
        async with _client_from_bundle(self.connection, self.timeout) as own_client:
            return await self._read_paused(own_client)

    async def _read_job_counts(self, client: redis.Redis) -> dict[str, int]:
        pipe = client.pipeline(transaction=False)
        for state in self.LIST_STATES:
            pipe.llen(self.key(state))
        for state in self.ZSET_STATES:
            pipe.zcard(self.key(state))
        results = await pipe.execute()
        states = (*self.LIST_STATES, *self.ZSET_STATES)
        return {state: int(value or 0) for state, value in zip(states, results)}

    @abstractmethod
    async def _read_paused(self, client: redis.Redis) -> bool: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, prefix={self.key_prefix!r})"


class BullQueueHandle(QueueHandle):
    """Handle for a legacy Bull queue, built from ``{"redis": bundle}``."""

    variant = EngineVariant.BULL

    @property
    def connection(self) -> dict[str, Any]:
        return self.options.get("redis", {})

    @property
    def key_prefix(self) -> str:
        return BULL_DEFAULT_PREFIX

    async def _read_paused(self, client: redis.Redis) -> bool:
        return bool(await client.exists(self.key("meta-paused")))


class BullMQQueueHandle(QueueHandle):
    """Handle for a BullMQ queue, built from ``{"connection": ..., "prefix": ...}``."""

    variant = EngineVariant.BULLMQ

    ZSET_STATES = ("delayed", "prioritized", "waiting-children", "completed", "failed")

    @property
    def connection(self) -> dict[str, Any]:
        return self.options.get("connection", {})

    @property
    def key_prefix(self) -> str:
        return self.options.get("prefix") or BULL_DEFAULT_PREFIX

    async def _read_paused(self, client: redis.Redis) -> bool:
        return bool(await client.hexists(self.key("meta"), "paused"))


class QueueEngine(ABC):
    """Builds one monitoring handle per discovered queue name."""

    variant: ClassVar[EngineVariant]

    def __init__(
        self,
        params: ConnectionParams,
        key_prefix: str | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        self.params = params
        self.key_prefix = key_prefix or None
        self.timeout = timeout

    @abstractmethod
    def build_handle(self, name: str) -> QueueHandle:
        """Build the handle for ``name``."""


class BullEngine(QueueEngine):
    variant = EngineVariant.BULL

    def build_handle(self, name: str) -> QueueHandle:
        # No explicit prefix: Bull resolves it from its own configuration.
        return BullQueueHandle(
            name, {"redis": self.params.as_bundle()}, timeout=self.timeout
        )


class BullMQEngine(QueueEngine):
    variant = EngineVariant.BULLMQ

    def build_handle(self, name: str) -> QueueHandle:
        options: dict[str, Any] = {"connection": self.params.as_bundle()}
        if self.key_prefix:
            options["prefix"] = self.key_prefix
        return BullMQQueueHandle(name, options, timeout=self.timeout)


ENGINES: dict[EngineVariant, type[QueueEngine]] = {
    EngineVariant.BULL: BullEngine,
    EngineVariant.BULLMQ: BullMQEngine,
}


def get_engine(
    variant: EngineVariant | str,
    params: ConnectionParams,
    key_prefix: str | None = None,
    *,
    timeout: float | None = None,
) -> QueueEngine:
    """Instantiate the engine registered for ``variant``."""
    try:
        engine_cls = ENGINES[EngineVariant(variant)]
    except (KeyError, ValueError):
        raise ValueError(
            f"Unsupported queue engine {variant!r}; expected one of: "
            + ", ".join(v.value for v in ENGINES)
        ) from None
    return engine_cls(params, key_prefix=key_prefix, timeout=timeout)


def build_handles(engine: QueueEngine, names: Iterable[str]) -> list[QueueHandle]:
    """Build handles for ``names`` in order.

    Raises:
        AdapterConstructionFailed: if any handle cannot be built.
    """
    handles: list[QueueHandle] = []
    for name in names:
        try:
            handles.append(engine.build_handle(name))
        except Exception as exc:
            raise AdapterConstructionFailed(name, str(exc)) from exc
    return handles
