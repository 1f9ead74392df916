"""
Cursor store — account id → opaque Dropbox cursor.

The engine depends only on ``CursorStore``; ``MemoryCursorStore`` is the
volatile reference backend (cursors are lost on restart, which only means
every account gets re-seeded from the latest cursor).
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict

from core.errors import CursorNotFoundError

logger = logging.getLogger(__name__)


class CursorStore(ABC):
    """Abstract persistence interface for per-account sync positions."""

    @abstractmethod
    async def get(self, account: str) -> str:
        """
        Return the stored cursor for ``account``.

        Raises ``CursorNotFoundError`` if nothing was ever stored. An empty
        string is a valid stored value and is returned as-is.
        """
        ...

    @abstractmethod
    async def set(self, account: str, cursor: str) -> None:
        """Store (or overwrite) the cursor for ``account``."""
        ...


class MemoryCursorStore(CursorStore):
    """In-process dict guarded by a write lock."""

    def __init__(self) -> None:
        self._cursors: Dict[str, str] = {}
        self._write_lock = asyncio.Lock()

    async def get(self, account: str) -> str:
        try:
            return self._cursors[account]
        except KeyError:
            raise CursorNotFoundError(account) from None

    async def set(self, account: str, cursor: str) -> None:
        async with self._write_lock:
            self._cursors[account] = cursor
        logger.debug("Cursor stored for %s", account)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._cursors)

    def __len__(self) -> int:
        return len(self._cursors)
