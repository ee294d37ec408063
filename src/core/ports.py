"""Ports (interfaces) used by the health check.

Ports define the minimal contracts for the transfer client and notification
adapters so that the core can be tested with fakes and reused with other
backends.
"""

from __future__ import annotations

from typing import Optional, Protocol


class TransferClientPort(Protocol):
    """Control-connection operations required by the connectivity check."""

    @property
    def is_connected(self) -> bool:
        ...

    @property
    def is_authenticated(self) -> bool:
        ...

    def connect(self) -> None:
        ...

    def login(self) -> None:
        ...

    def file_exists(self, path: str) -> bool:
        ...

    def disconnect(self) -> None:
        ...


class NotifierPort(Protocol):
    """Alert delivery required by the orchestrator."""

    def send_alert(self, cause: Optional[BaseException]) -> None:
        ...
