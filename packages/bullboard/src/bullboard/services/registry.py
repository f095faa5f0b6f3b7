"""Active queue registry read by the dashboard routes."""

import logging
from collections.abc import Iterable

from bullboard.engines import QueueHandle

logger = logging.getLogger(__name__)


class QueueRegistry:
    """
    Currently published queue handles.

    The handle list is an immutable tuple replaced in a single assignment,
    so readers always see either the previous or the new list, never a mix.
    Each publish carries the generation of the refresh cycle that built it;
    results from an older cycle than the one already published are refused.
    """

    def __init__(self) -> None:
        self._handles: tuple[QueueHandle, ...] = ()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def names(self) -> list[str]:
        return [handle.name for handle in self._handles]

    def snapshot(self) -> tuple[QueueHandle, ...]:
        return self._handles

    def get(self, name: str) -> QueueHandle | None:
        for handle in self._handles:
            if handle.name == name:
                return handle
        return None

    def publish(self, handles: Iterable[QueueHandle], *, generation: int) -> bool:
        """Replace the published handles. Returns False for a stale generation."""
        if generation <= self._generation:
            logger.debug(
                "Refused stale registry publish (generation %d <= %d)",
                generation,
                self._generation,
            )
            return False
        self._handles, self._generation = tuple(handles), generation
        return True

    def __len__(self) -> int:
        return len(self._handles)
