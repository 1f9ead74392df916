"""
Dropbox change-sync service — application entry point.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import List, Optional

import httpx
import uvicorn
from fastapi import FastAPI

from api.errors import register_exception_handlers
from api.middleware import register_middleware
from api.routes import router as dropbox_router
from auth.oauth2 import OAuth2Authorizer
from auth.routes import router as oauth_router
from config.settings import Settings, config
from connectors.dropbox import DropboxClient
from core.sync_engine import FailurePolicy, SyncEngine
from database.cursor_store import MemoryCursorStore
from subscribers.base import Subscriber
from subscribers.log import LogSubscriber
from subscribers.propagate import Propagator, Target

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def build_subscribers(settings: Settings, client: DropboxClient) -> List[Subscriber]:
    """Subscribers in fan-out order."""
    subscribers: List[Subscriber] = []
    if settings.log_changes:
        subscribers.append(LogSubscriber())
    if settings.propagate_source:
        targets = [Target(name=name) for name in settings.propagate_targets]
        subscribers.append(Propagator(settings.propagate_source, targets, client))
    return subscribers


async def await_authorization(app: FastAPI, settings: Settings) -> None:
    """Wait for the OAuth2 callback, then wire the client into the engine."""
    authorizer: OAuth2Authorizer = app.state.authorizer
    engine: SyncEngine = app.state.engine

    http: httpx.AsyncClient = await authorizer.handoff.wait()
    client = DropboxClient(http, root_folder=settings.dropbox_root_folder)
    app.state.http_client = http

    engine.subscribe(*build_subscribers(settings, client))
    engine.attach_client(client)
    logger.info("Ready to make Dropbox requests.")


def create_app(
    settings: Optional[Settings] = None,
    *,
    authorizer: Optional[OAuth2Authorizer] = None,
    engine: Optional[SyncEngine] = None,
) -> FastAPI:
    settings = settings or config

    app = FastAPI(
        title="Dropbox Change Sync",
        version="1.0.0",
        description="Dropbox webhook receiver with cursor-based change fan-out.",
    )

    app.state.authorizer = authorizer or OAuth2Authorizer(
        settings.dropbox_app_key,
        settings.redirect_uri,
        token_access_type=settings.token_access_type,
        timeout=settings.http_timeout_seconds,
    )
    app.state.engine = engine or SyncEngine(
        MemoryCursorStore(),
        failure_policy=FailurePolicy(settings.sync_failure_policy),
        root_path=settings.sync_root_path,
    )
    app.state.webhook_secret = settings.dropbox_app_secret
    app.state.http_client = None

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    app.include_router(oauth_router)
    app.include_router(dropbox_router)

    @app.on_event("startup")
    async def on_startup():
        if not settings.dropbox_app_key:
            logger.warning("DROPBOX_APP_KEY not set — authorization will fail")
        if not settings.dropbox_app_secret:
            logger.error("DROPBOX_APP_SECRET not set — webhook signatures are checked against an empty key")
        app.state.auth_task = asyncio.create_task(await_authorization(app, settings))
        logger.info(
            "Waiting for authorization — open %s/ in a browser",
            settings.oauth_redirect_base.rstrip("/"),
        )

    @app.on_event("shutdown")
    async def on_shutdown():
        task = app.state.auth_task
        if not task.done():
            logger.warning("Shutting down before authorization completed")
            task.cancel()
        if app.state.http_client is not None:
            await app.state.http_client.aclose()

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
