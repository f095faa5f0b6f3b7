"""Scoped Redis connections for refresh cycles."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from redis.exceptions import RedisError

from bullboard.errors import StoreUnavailable
from bullboard.models import ConnectionParams

logger = logging.getLogger(__name__)


def create_client(
    params: ConnectionParams,
    *,
    timeout: float | None = None,
    decode_responses: bool = True,
) -> redis.Redis:
    """Build a client for ``params`` without connecting."""
    return redis.Redis(
        host=params.host,
        port=params.port,
        db=params.db,
        password=params.password,
        ssl=params.tls,
        socket_connect_timeout=timeout,
        socket_timeout=timeout,
        decode_responses=decode_responses,
    )


@asynccontextmanager
async def open_store(
    params: ConnectionParams,
    *,
    timeout: float | None = None,
) -> AsyncIterator[redis.Redis]:
    """
    Connect to Redis for the duration of one refresh cycle.

    The connection is verified with PING before it is handed out and is
    always closed on exit, including when the body raises. Keys come back
    as raw bytes; decoding is left to the key parser.

    Raises:
        StoreUnavailable: if the connection cannot be established.
    """
    client = create_client(params, timeout=timeout, decode_responses=False)
    try:
        try:
            await client.ping()  # type: ignore[misc]
        except (RedisError, OSError) as exc:
            raise StoreUnavailable(
                f"Redis at {params.host}:{params.port}/{params.db} unavailable: {exc}"
            ) from exc
        yield client
    finally:
        await client.aclose()
        logger.debug("Redis connection closed")
