"""
Sync engine — brings changed accounts up to date and fans their deltas out
to the registered subscribers.

Per account, in the order received:

1. Look up the stored cursor.
2. No cursor yet: seed the account with the provider's latest cursor
   (fetched at most once per update) and stop there. History before the
   first notification is never delivered.
3. Otherwise fetch the delta since the cursor and hand it to every
   subscriber, sequentially, in registration order.
4. Persist the new cursor only after every subscriber succeeded, so a
   crash or failure in between means redelivery, not loss.

No remote call is made before ``attach_client`` opens the readiness gate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from connectors.dropbox import DropboxClient
from core.errors import AlreadyResolvedError, CursorNotFoundError, SubscriberError, UpdateError
from core.readiness import ReadinessGate
from database.cursor_store import CursorStore
from subscribers.base import Subscriber

logger = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    ABORT = "abort"      # first failure abandons the rest of the update
    ISOLATE = "isolate"  # failures are per account and reported together


@dataclass
class UpdateResult:
    synced: List[str] = field(default_factory=list)
    seeded: List[str] = field(default_factory=list)
    failed: Dict[str, Exception] = field(default_factory=dict)


class SyncEngine:
    def __init__(
        self,
        cursors: CursorStore,
        *,
        failure_policy: FailurePolicy = FailurePolicy.ABORT,
        root_path: str = "",
    ) -> None:
        self.cursors = cursors
        self.failure_policy = FailurePolicy(failure_policy)
        self.root_path = root_path
        self.readiness = ReadinessGate()
        self._subscribers: List[Subscriber] = []
        self._client: Optional[DropboxClient] = None

    # ── wiring ──────────────────────────────────────────────────────────

    def subscribe(self, *subscribers: Subscriber) -> None:
        self._subscribers.extend(subscribers)
        for sub in subscribers:
            logger.info("Subscriber registered: %s", sub.name)

    @property
    def subscribers(self) -> List[Subscriber]:
        return list(self._subscribers)

    def attach_client(self, client: DropboxClient) -> None:
        """Install the authorized client and open the readiness gate."""
        if self._client is not None:
            raise AlreadyResolvedError("sync engine already has a client")
        self._client = client
        self.readiness.mark_ready()

    @property
    def client(self) -> DropboxClient:
        self.readiness.require()
        return self._client

    # ── update processing ───────────────────────────────────────────────

    async def process_update(self, accounts: Iterable[str]) -> UpdateResult:
        """
        Sync every account of one notification.

        Raises ``UpdateError`` if any account failed; with the ABORT policy
        it is raised at the first failure and later accounts are skipped.
        """
        client = self.client
        result = UpdateResult()
        latest: Optional[str] = None

        for account in accounts:
            try:
                try:
                    cursor = await self.cursors.get(account)
                except CursorNotFoundError:
                    if latest is None:
                        latest = await client.get_latest_cursor(self.root_path)
                    await self.cursors.set(account, latest)
                    result.seeded.append(account)
                    logger.info("Seeded %s with the latest cursor", account)
                    continue

                await self._sync_account(client, account, cursor)
                result.synced.append(account)
            except Exception as exc:
                result.failed[account] = exc
                if self.failure_policy is FailurePolicy.ABORT:
                    raise UpdateError(result.failed) from exc
                logger.error("Sync failed for %s: %s", account, exc)

        if result.failed:
            raise UpdateError(result.failed)
        return result

    async def _sync_account(self, client: DropboxClient, account: str, cursor: str) -> None:
        folder = await client.continue_folder(cursor)
        logger.info("%s: %d change(s) since last cursor", account, len(folder.entries))

        for sub in self._subscribers:
            try:
                await sub.handle(account, list(folder.entries))
            except Exception as exc:
                raise SubscriberError(sub.name, account, exc) from exc

        await self.cursors.set(account, folder.cursor)
