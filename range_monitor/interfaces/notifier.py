"""Notifier protocol — notification channel abstraction."""
from typing import Protocol


class Notifier(Protocol):
    """Abstract interface for delivering a text message to a destination."""

    async def send_message(self, destination: str, text: str) -> bool: ...
