"""
OAuth2 routes — start the browser flow and receive the provider callback.
"""

from __future__ import annotations

import html
import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import HTMLResponse, RedirectResponse

from api.dependencies import get_authorizer
from auth.oauth2 import OAuth2Authorizer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth2"])


@router.get("/")
async def authorize(authorizer: OAuth2Authorizer = Depends(get_authorizer)) -> RedirectResponse:
    """Send the browser to Dropbox's consent page."""
    return RedirectResponse(
        url=authorizer.authorize_url(),
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    )


@router.get("/oauth2/callback")
async def oauth_callback(
    code: str = Query(""),
    state: str = Query(""),
    authorizer: OAuth2Authorizer = Depends(get_authorizer),
) -> HTMLResponse:
    """
    Dropbox redirects here after consent.

    Exchanges the code for a token and hands the authorized client to the
    sync engine. Errors surface as 400 through the exception handlers.
    """
    token = await authorizer.exchange(code, state)
    return HTMLResponse(content=_callback_html(token.account_id or "unknown"), status_code=200)


def _callback_html(account_id: str) -> str:
    """Small page shown in the browser once the exchange succeeded."""
    return f"""<!DOCTYPE html>
<html>
<head>
    <title>Dropbox connected</title>
    <style>
        body {{
            font-family: system-ui, sans-serif;
            display: flex; align-items: center; justify-content: center;
            height: 100vh; margin: 0;
        }}
        .card {{ text-align: center; padding: 40px; max-width: 400px; }}
    </style>
</head>
<body>
    <div class="card">
        <h2>Connected!</h2>
        <p>Dropbox account {html.escape(account_id)} authorized. You can close this window.</p>
    </div>
</body>
</html>"""
