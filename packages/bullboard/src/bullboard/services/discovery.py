"""Queue discovery: scan the key namespace and derive queue names.

Bull and BullMQ store every queue under ``<prefix>:<queue>:<suffix>`` keys
(``bull:emails:wait``, ``bull:emails:42``, ...). The queue name is the
second colon-delimited segment.
"""

import logging
from collections.abc import Iterable

import redis.asyncio as redis
from redis.exceptions import RedisError

from bullboard.errors import MalformedKey, StoreUnavailable

logger = logging.getLogger(__name__)

KEY_SEPARATOR = ":"
MIN_KEY_SEGMENTS = 3


def queue_key_pattern(prefix: str) -> str:
    """SCAN pattern for every key under ``prefix``."""
    return f"{prefix}{KEY_SEPARATOR}*"


async def scan_queue_keys(
    client: redis.Redis,
    prefix: str,
    *,
    count: int = 1000,
) -> list[str | bytes]:
    """
    Return every key matching ``prefix:*``, undecoded.

    Uses SCAN rather than KEYS so large keyspaces do not block Redis.

    Raises:
        StoreUnavailable: if the scan fails, including a client that decodes
            responses and meets a key that is not UTF-8.
    """
    keys: list[str | bytes] = []
    try:
        async for key in client.scan_iter(match=queue_key_pattern(prefix), count=count):
            keys.append(key)
    except (RedisError, OSError, UnicodeDecodeError) as exc:
        raise StoreUnavailable(f"Scan of '{prefix}:*' failed: {exc}") from exc
    logger.debug("Scanned %d keys under prefix %r", len(keys), prefix)
    return keys


def extract_queue_name(key: str | bytes) -> str:
    """
    Queue name embedded in ``key``.

    Raises:
        MalformedKey: if the key is not UTF-8, has fewer than three
            segments or has an empty queue segment.
    """
    if isinstance(key, bytes):
        try:
            key = key.decode()
        except UnicodeDecodeError:
            raise MalformedKey(key) from None
    parts = key.split(KEY_SEPARATOR)
    if len(parts) < MIN_KEY_SEGMENTS or not parts[1]:
        raise MalformedKey(key)
    return parts[1]


def extract_queue_names(keys: Iterable[str | bytes]) -> list[str]:
    """Sorted, de-duplicated queue names for ``keys``.

    Keys that do not follow the naming convention are skipped with a
    warning.
    """
    names: set[str] = set()
    for key in keys:
        try:
            names.add(extract_queue_name(key))
        except MalformedKey as exc:
            logger.warning("Skipping key: %s", exc)
    return sorted(names)
