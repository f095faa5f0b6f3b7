"""Board services layer."""

from bullboard.services.discovery import (
    extract_queue_name,
    extract_queue_names,
    queue_key_pattern,
    scan_queue_keys,
)
from bullboard.services.redis import create_client, open_store
from bullboard.services.refresh import QueueRefresher, RefreshResult, RefreshState
from bullboard.services.registry import QueueRegistry

__all__ = [
    # Redis
    "create_client",
    "open_store",
    # Discovery
    "queue_key_pattern",
    "scan_queue_keys",
    "extract_queue_name",
    "extract_queue_names",
    # Registry / refresh
    "QueueRegistry",
    "QueueRefresher",
    "RefreshResult",
    "RefreshState",
]
