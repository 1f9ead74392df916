"""
Subscriber — abstract interface for consumers of change batches.

The sync engine calls every registered subscriber, in registration order,
with the entries of one account's delta. Raising from ``handle`` stops the
fan-out and keeps that account's cursor where it was, so the same batch is
delivered again on the next notification.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from connectors.models import FileEntry


class Subscriber(ABC):
    """Abstract base for all change consumers."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def handle(self, account: str, entries: List[FileEntry]) -> None:
        """Consume one batch. Must not keep state between batches."""
        ...
