"""
Dropbox routes — webhook endpoint plus direct file / folder queries.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Query, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from api.dependencies import get_engine, get_webhook_secret, ready_client
from connectors.dropbox import DropboxClient
from core.errors import (
    AuthenticationError,
    SignatureMismatchError,
    UpdateError,
    ValidationError,
)
from core.sync_engine import SyncEngine
from core.webhook import SIGNATURE_HEADER, verify_signature

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dropbox"])


class ListFolderNotification(BaseModel):
    accounts: List[str] = Field(default_factory=list)


class Notification(BaseModel):
    """Body of a Dropbox webhook POST."""

    list_folder: ListFolderNotification


# ── Background task ────────────────────────────────────────────────────


async def _process_update(engine: SyncEngine, accounts: List[str]) -> None:
    """Run one update after the 202 has gone out. Failures are only logged."""
    try:
        result = await engine.process_update(accounts)
    except UpdateError as exc:
        logger.error("error processing update: %s", exc)
        return
    logger.info(
        "Update processed: %d synced, %d seeded",
        len(result.synced),
        len(result.seeded),
    )


# ── Webhook ────────────────────────────────────────────────────────────


@router.get("/update", response_class=PlainTextResponse)
async def verify_webhook(challenge: str = Query("")) -> PlainTextResponse:
    """Echo Dropbox's verification challenge."""
    return PlainTextResponse(
        content=challenge,
        headers={"X-Content-Type-Options": "nosniff"},
    )


@router.post("/update", status_code=status.HTTP_202_ACCEPTED)
async def receive_update(
    request: Request,
    background_tasks: BackgroundTasks,
    engine: SyncEngine = Depends(get_engine),
    secret: str = Depends(get_webhook_secret),
    signature: Optional[str] = Header(default=None, alias=SIGNATURE_HEADER),
) -> Dict[str, Any]:
    """
    Receive a change notification.

    1. Reject while the OAuth2 handshake is pending (503)
    2. Check the signature against the raw body (401 / 403)
    3. Parse the account list (400)
    4. Queue the update and answer 202 immediately
    """
    engine.readiness.require()

    if not signature:
        raise AuthenticationError(f"missing header `{SIGNATURE_HEADER}`")

    body = await request.body()
    if not verify_signature(secret, signature, body):
        raise SignatureMismatchError("signature does not match request body")

    try:
        notification = Notification.model_validate(json.loads(body))
    except (json.JSONDecodeError, UnicodeDecodeError, PydanticValidationError) as exc:
        raise ValidationError(f"error parsing request body: {exc}", error_type="InvalidPayload") from exc

    accounts = notification.list_folder.accounts
    background_tasks.add_task(_process_update, engine, accounts)
    logger.info("Update received for %d account(s)", len(accounts))
    return {"status": "accepted", "count": len(accounts)}


# ── Direct queries ─────────────────────────────────────────────────────


@router.get("/file")
async def describe_file(
    path: str = Query(""),
    client: DropboxClient = Depends(ready_client),
) -> Dict[str, Any]:
    if not path:
        raise ValidationError("missing `path` parameter in request URL")
    entry = await client.describe_file(path)
    return entry.model_dump(mode="json", by_alias=True)


@router.get("/folder")
async def describe_folder(
    name: str = Query(""),
    cursor: str = Query(""),
    client: DropboxClient = Depends(ready_client),
) -> Dict[str, Any]:
    folder = await client.list_folder(name, cursor)
    return folder.model_dump(mode="json", by_alias=True)


@router.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    engine: SyncEngine = request.app.state.engine
    authorizer = request.app.state.authorizer
    return {
        "status": "ready" if engine.readiness.is_ready else "starting",
        "authorization": authorizer.status.value,
        "subscribers": [s.name for s in engine.subscribers],
    }
