"""Notifier port -- fire-and-forget text messages to a chat."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Notifier(Protocol):
    """Sends a status message. Implementations never raise."""

    async def notify(self, destination: int, text: str) -> None: ...
