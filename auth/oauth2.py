"""
PKCE OAuth2 authorizer for the Dropbox app.

One ``AuthorizationSession`` holds the code verifier, the challenge and the
anti-CSRF state. They are generated once and used for at most one token
exchange. A successful exchange hands exactly one authorized
``httpx.AsyncClient`` to whoever awaits ``OAuth2Authorizer.handoff``.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import secrets
from enum import Enum
from typing import Optional
from urllib.parse import urlencode

import httpx

from connectors.models import OAuth2Token
from core.errors import ValidationError
from core.handoff import Handoff

logger = logging.getLogger(__name__)

_DROPBOX_AUTH_URL = "https://www.dropbox.com/oauth2/authorize"
_DROPBOX_TOKEN_URL = "https://api.dropboxapi.com/oauth2/token"

_VERIFIER_BYTES = 96
_STATE_BYTES = 48


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def code_challenge(verifier: str) -> str:
    """S256 challenge: base64url(SHA256(verifier)) without padding."""
    return _b64url(hashlib.sha256(verifier.encode("ascii")).digest())


class SessionState(str, Enum):
    INITIALIZED = "initialized"
    AWAITING_CALLBACK = "awaiting_callback"
    EXCHANGING = "exchanging"
    EXCHANGED = "exchanged"
    REJECTED = "rejected"


class AuthorizationSession:
    """Single-use PKCE material plus the authorization URL built from it."""

    def __init__(self, client_id: str, redirect_uri: str, token_access_type: str = "online"):
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.code_verifier = _b64url(secrets.token_bytes(_VERIFIER_BYTES))
        self.code_challenge = code_challenge(self.code_verifier)
        self.state = _b64url(secrets.token_bytes(_STATE_BYTES))
        self.status = SessionState.INITIALIZED

        params = {
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "code_challenge": self.code_challenge,
            "code_challenge_method": "S256",
            "state": self.state,
            "token_access_type": token_access_type,
        }
        self.auth_url = f"{_DROPBOX_AUTH_URL}?{urlencode(params)}"

    @property
    def closed(self) -> bool:
        return self.status in (SessionState.EXCHANGING, SessionState.EXCHANGED, SessionState.REJECTED)

    def state_matches(self, state: str) -> bool:
        return hmac.compare_digest(self.state.encode(), (state or "").encode())


class OAuth2Authorizer:
    """
    Drives the browser flow and delivers the authorized client.

    A rejected session is not retried; the next ``authorize_url()`` call
    starts over with fresh PKCE material.
    """

    def __init__(
        self,
        client_id: str,
        redirect_uri: str,
        *,
        token_access_type: str = "online",
        timeout: float = 30.0,
        token_url: str = _DROPBOX_TOKEN_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.token_access_type = token_access_type
        self.timeout = timeout
        self.token_url = token_url
        self._transport = transport
        self.session = self._new_session()
        self.token: Optional[OAuth2Token] = None
        self.handoff: Handoff[httpx.AsyncClient] = Handoff()

    def _new_session(self) -> AuthorizationSession:
        return AuthorizationSession(self.client_id, self.redirect_uri, self.token_access_type)

    @property
    def status(self) -> SessionState:
        return self.session.status

    def authorize_url(self) -> str:
        if self.session.status is SessionState.REJECTED:
            logger.info("Previous authorization was rejected — starting a new session")
            self.session = self._new_session()
        if self.session.status is SessionState.INITIALIZED:
            self.session.status = SessionState.AWAITING_CALLBACK
        return self.session.auth_url

    async def exchange(self, code: str, state: str) -> OAuth2Token:
        """
        Validate the callback, trade ``code`` + verifier for a token and
        deliver the authorized client.

        Raises ``ValidationError`` (type ``OAuth2Error``) on any failure.
        A state mismatch leaves the session untouched.
        """
        session = self.session
        if not session.state_matches(state):
            raise ValidationError("states not equal", error_type="OAuth2Error")
        if session.closed:
            raise ValidationError(
                f"authorization session already {session.status.value}", error_type="OAuth2Error",
            )
        if not code:
            raise ValidationError("missing `code` parameter", error_type="OAuth2Error")

        # claimed before the first await; a concurrent callback sees it closed
        session.status = SessionState.EXCHANGING
        try:
            token = await self._request_token(code, session)
        except (httpx.HTTPError, ValueError) as exc:
            session.status = SessionState.REJECTED
            logger.error("OAuth2 token exchange failed: %s", exc)
            raise ValidationError(
                f"error exchanging token: {exc}", error_type="OAuth2Error",
            ) from exc

        session.status = SessionState.EXCHANGED
        self.token = token
        logger.info("OAuth2 exchange complete (account=%s)", token.account_id)
        self.handoff.deliver(self.authorized_client(token))
        return token

    async def _request_token(self, code: str, session: AuthorizationSession) -> OAuth2Token:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(
                self.token_url,
                data={
                    "code": code,
                    "grant_type": "authorization_code",
                    "client_id": self.client_id,
                    "redirect_uri": session.redirect_uri,
                    "code_verifier": session.code_verifier,
                },
            )
            resp.raise_for_status()
            return OAuth2Token.model_validate(resp.json())

    def authorized_client(self, token: OAuth2Token) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"Authorization": f"Bearer {token.access_token}"},
            timeout=self.timeout,
            transport=self._transport,
        )
