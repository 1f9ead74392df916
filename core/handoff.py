"""
One-shot handoff of the authorized HTTP client.

The OAuth2 callback resolves it exactly once; the application start-up
task awaits it. Wait timeouts are the caller's business
(``asyncio.wait_for``).
"""

from __future__ import annotations

import asyncio
from typing import Generic, Optional, TypeVar

from core.errors import AlreadyResolvedError

T = TypeVar("T")


class Handoff(Generic[T]):
    """Single-assignment future."""

    def __init__(self) -> None:
        self._future: Optional[asyncio.Future] = None
        self._resolved = False

    def _get_future(self) -> asyncio.Future:
        # Bound lazily so the handoff can be built outside a running loop.
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return self._future

    @property
    def resolved(self) -> bool:
        return self._resolved

    def deliver(self, value: T) -> None:
        if self._resolved:
            raise AlreadyResolvedError("handoff value was already delivered")
        self._resolved = True
        self._get_future().set_result(value)

    async def wait(self) -> T:
        return await asyncio.shield(self._get_future())
