"""
LogSubscriber — writes one log line per changed entry.
"""

from __future__ import annotations

import logging
from typing import List

from connectors.models import FileEntry
from subscribers.base import Subscriber

logger = logging.getLogger(__name__)


class LogSubscriber(Subscriber):
    def __init__(self, level: int = logging.INFO):
        self.level = level

    async def handle(self, account: str, entries: List[FileEntry]) -> None:
        for entry in entries:
            logger.log(
                self.level,
                "[%s] %s %s — content hash %s, modified at %s by %s",
                account,
                entry.tag,
                entry.path_display or entry.name,
                entry.content_hash,
                entry.client_modified,
                entry.modified_by,
            )
