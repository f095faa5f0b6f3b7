from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import pytest
import pytest_asyncio
from fakeredis import FakeServer
from fakeredis.aioredis import FakeRedis

from bullboard.config import Settings
from bullboard.errors import StoreUnavailable


@pytest.fixture
def fake_server() -> FakeServer:
    return FakeServer()


@pytest_asyncio.fixture
async def fake_redis(fake_server: FakeServer) -> AsyncIterator[FakeRedis]:
    client = FakeRedis(server=fake_server, decode_responses=True)
    try:
        yield client
    finally:
        await client.aclose()


@dataclass
class FakeStore:
    """Store opener that hands out a fake client and records its use."""

    client: FakeRedis | None
    error: str | None = None
    opened: int = 0
    closed: int = 0
    timeouts: list[float | None] = field(default_factory=list)

    @asynccontextmanager
    async def __call__(self, params, *, timeout=None):
        self.opened += 1
        self.timeouts.append(timeout)
        try:
            if self.error is not None:
                raise StoreUnavailable(self.error)
            yield self.client
        finally:
            self.closed += 1


@pytest.fixture
def fake_store(fake_redis: FakeRedis) -> FakeStore:
    return FakeStore(client=fake_redis)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        redis_host="redis.test",
        bull_prefix="bull",
        bull_version="BULL",
    )


@pytest_asyncio.fixture
async def raw_store(fake_server: FakeServer) -> AsyncIterator[FakeStore]:
    """Store opener whose client returns undecoded bytes, like ``open_store``."""
    client = FakeRedis(server=fake_server, decode_responses=False)
    try:
        yield FakeStore(client=client)
    finally:
        await client.aclose()
