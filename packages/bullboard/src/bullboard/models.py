"""Connection and engine types shared across the board."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class EngineVariant(StrEnum):
    """Queue engine the board builds handles for."""

    BULL = "BULL"
    BULLMQ = "BULLMQ"


@dataclass(frozen=True)
class ConnectionParams:
    """Redis connection parameters shared by the scanner and queue handles."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str | None = None
    tls: bool = False

    def as_bundle(self) -> dict[str, Any]:
        """Connection bundle handed to queue handles.

        ``password`` is only present when one is configured.
        """
        bundle: dict[str, Any] = {"host": self.host, "port": self.port, "db": self.db}
        if self.password:
            bundle["password"] = self.password
        bundle["tls"] = self.tls
        return bundle
