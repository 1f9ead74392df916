"""
Propagator — when a watched source file changes, download it, transform it
and upload the result to one or more target files.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from connectors.dropbox import DropboxClient
from connectors.models import FileEntry
from subscribers.base import Subscriber

logger = logging.getLogger(__name__)

Transform = Callable[[bytes], bytes]


def identity(data: bytes) -> bytes:
    return data


@dataclass
class Target:
    name: str
    transform: Transform = field(default=identity)


class Propagator(Subscriber):
    def __init__(self, source: str, targets: List[Target], client: DropboxClient):
        self.source = source
        self.targets = list(targets)
        self.client = client

    @property
    def name(self) -> str:
        return f"Propagator({self.source})"

    def _find_source(self, entries: List[FileEntry]) -> Optional[FileEntry]:
        for entry in entries:
            if entry.tag == "file" and entry.name == self.source:
                if not entry.is_downloadable:
                    logger.warning("Source %s changed but is not downloadable", entry.name)
                    return None
                return entry
            logger.debug("skipping %s", entry.name)
        return None

    async def handle(self, account: str, entries: List[FileEntry]) -> None:
        source = self._find_source(entries)
        if source is None:
            return

        logger.info("Propagating %s for %s to %d target(s)", source.name, account, len(self.targets))
        data = await self.client.download(source.path_display or source.name)

        for target in self.targets:
            out = target.transform(data)
            await self.client.upload(target.name, out)
