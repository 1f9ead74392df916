"""
FastAPI dependencies (shared across routes).

The engine and the authorizer are built in ``main.create_app`` and live on
``app.state``; routes reach them only through these functions.
"""

from __future__ import annotations

from fastapi import Request

from auth.oauth2 import OAuth2Authorizer
from connectors.dropbox import DropboxClient
from core.sync_engine import SyncEngine


def get_engine(request: Request) -> SyncEngine:
    return request.app.state.engine


def get_authorizer(request: Request) -> OAuth2Authorizer:
    return request.app.state.authorizer


def get_webhook_secret(request: Request) -> str:
    return request.app.state.webhook_secret


def ready_client(request: Request) -> DropboxClient:
    """Remote client, or ``NotReadyError`` (503) while starting up."""
    return get_engine(request).client
