"""Errors raised by the queue discovery pipeline."""


class BoardError(Exception):
    """Base exception for board errors."""

    pass


class StoreUnavailable(BoardError):
    """Raised when Redis cannot be reached or a scan fails."""

    pass


class AdapterConstructionFailed(BoardError):
    """Raised when a queue handle cannot be built for a queue name."""

    def __init__(self, queue_name: str, reason: str | None = None) -> None:
        self.queue_name = queue_name
        message = f"Could not build queue handle for '{queue_name}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MalformedKey(BoardError):
    """Raised when a key does not follow the ``prefix:queue:suffix`` shape."""

    def __init__(self, key: str | bytes) -> None:
        self.key = key
        super().__init__(f"Key {key!r} does not match 'prefix:queue:suffix'")
