"""
Readiness gate — flips false → true once, when the remote client arrives.
"""

from __future__ import annotations

import logging

from core.errors import AlreadyResolvedError, NotReadyError

logger = logging.getLogger(__name__)


class ReadinessGate:
    def __init__(self) -> None:
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    def mark_ready(self) -> None:
        if self._ready:
            raise AlreadyResolvedError("readiness gate is already open")
        self._ready = True
        logger.info("Readiness gate opened")

    def require(self) -> None:
        """Raise ``NotReadyError`` instead of blocking while closed."""
        if not self._ready:
            raise NotReadyError()
