"""
HTTP-level tests — webhook, direct queries and the OAuth2 routes.
"""

import json
import logging
import time
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi.testclient import TestClient

from auth.oauth2 import OAuth2Authorizer
from config.settings import Settings
from connectors.dropbox import DropboxClient
from connectors.models import FileEntry, Folder
from core.errors import RemoteProviderError
from core.sync_engine import SyncEngine
from core.webhook import sign
from database.cursor_store import MemoryCursorStore
from main import create_app

SECRET = "app-secret"


def _token_transport(account_id: str = "dbid:acct1") -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"access_token": "sl.token", "account_id": account_id})

    return httpx.MockTransport(handler)


def _settings() -> Settings:
    return Settings(dropbox_app_key="app-key", dropbox_app_secret=SECRET, log_changes=False)


def _mock_client() -> MagicMock:
    client = MagicMock(spec=DropboxClient)
    client.get_latest_cursor = AsyncMock(return_value="L1")
    client.list_folder = AsyncMock(return_value=Folder(cursor="c2", entries=[FileEntry(name="a.txt")]))
    client.continue_folder = AsyncMock(return_value=Folder(cursor="c2", entries=[]))
    client.describe_file = AsyncMock(return_value=FileEntry(name="a.txt", content_hash="h1"))
    return client


def _build(ready: bool = True):
    settings = _settings()
    store = MemoryCursorStore()
    engine = SyncEngine(store)
    authorizer = OAuth2Authorizer("app-key", settings.redirect_uri, transport=_token_transport())
    client = _mock_client()
    if ready:
        engine.attach_client(client)
    app = create_app(settings, authorizer=authorizer, engine=engine)
    return app, store, client


def _notification(*accounts: str) -> bytes:
    return json.dumps({"list_folder": {"accounts": list(accounts)}}).encode()


def _post_update(http: TestClient, body: bytes, signature: str | None = "sign"):
    headers = {"Content-Type": "application/json"}
    if signature == "sign":
        headers["X-Dropbox-Signature"] = sign(SECRET, body)
    elif signature is not None:
        headers["X-Dropbox-Signature"] = signature
    return http.post("/update", content=body, headers=headers)


class TestWebhookChallenge:
    def test_echoes_challenge(self):
        app, _, _ = _build(ready=False)
        resp = TestClient(app).get("/update", params={"challenge": "foo"})

        assert resp.status_code == 200
        assert resp.text == "foo"
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.headers["x-content-type-options"] == "nosniff"


class TestReceiveUpdate:
    def test_not_ready_returns_503(self):
        app, store, _ = _build(ready=False)
        resp = _post_update(TestClient(app), _notification("acct1"))

        assert resp.status_code == 503
        assert resp.json() == {"Type": "NotReady", "Message": "server is still starting up"}
        assert store.snapshot() == {}

    def test_missing_signature_returns_401(self):
        app, _, client = _build()
        resp = _post_update(TestClient(app), _notification("acct1"), signature=None)

        assert resp.status_code == 401
        client.get_latest_cursor.assert_not_awaited()

    def test_bad_signature_returns_403(self):
        app, _, client = _build()
        resp = _post_update(TestClient(app), _notification("acct1"), signature="0" * 64)

        assert resp.status_code == 403
        client.get_latest_cursor.assert_not_awaited()

    def test_malformed_body_returns_400(self):
        app, _, _ = _build()
        resp = _post_update(TestClient(app), b'{"list_folder": ')

        assert resp.status_code == 400
        assert resp.json()["Type"] == "InvalidPayload"

    def test_new_account_is_seeded(self):
        app, store, client = _build()
        resp = _post_update(TestClient(app), _notification("acct1"))

        assert resp.status_code == 202
        client.get_latest_cursor.assert_awaited_once()
        client.continue_folder.assert_not_awaited()
        assert store.snapshot() == {"acct1": "L1"}

    def test_processing_failure_does_not_change_response(self):
        app, store, client = _build()
        client.get_latest_cursor = AsyncMock(side_effect=RemoteProviderError(500, "/x", "boom"))
        resp = _post_update(TestClient(app), _notification("acct1"))

        assert resp.status_code == 202
        assert store.snapshot() == {}


class TestQueries:
    def test_describe_file_not_ready(self):
        app, _, _ = _build(ready=False)
        resp = TestClient(app).get("/file", params={"path": "a.txt"})
        assert resp.status_code == 503

    def test_describe_file_requires_path(self):
        app, _, _ = _build()
        resp = TestClient(app).get("/file")
        assert resp.status_code == 400
        assert resp.json()["Type"] == "MissingInfo"

    def test_describe_file(self):
        app, _, client = _build()
        resp = TestClient(app).get("/file", params={"path": "a.txt"})

        assert resp.status_code == 200
        assert resp.json()["name"] == "a.txt"
        assert resp.json()[".tag"] == "file"
        client.describe_file.assert_awaited_once_with("a.txt")

    def test_backend_error_is_structured(self):
        app, _, client = _build()
        client.describe_file = AsyncMock(side_effect=RemoteProviderError(409, "/files/get_metadata", "not_found"))
        resp = TestClient(app).get("/file", params={"path": "a.txt"})

        assert resp.status_code == 500
        body = resp.json()
        assert body["Type"] == "BackendError"
        assert "409" in body["Message"]

    def test_describe_folder(self):
        app, _, client = _build()
        resp = TestClient(app).get("/folder", params={"name": "", "cursor": "c1"})

        assert resp.status_code == 200
        assert resp.json()["cursor"] == "c2"
        client.list_folder.assert_awaited_once_with("", "c1")


class TestOAuthRoutes:
    def test_authorize_redirects(self):
        app, _, _ = _build(ready=False)
        resp = TestClient(app).get("/", follow_redirects=False)

        assert resp.status_code == 307
        location = urlparse(resp.headers["location"])
        assert location.netloc == "www.dropbox.com"
        assert parse_qs(location.query)["code_challenge_method"] == ["S256"]

    def test_callback_with_wrong_state(self):
        app, _, _ = _build(ready=False)
        resp = TestClient(app).get("/oauth2/callback", params={"code": "x", "state": "forged"})

        assert resp.status_code == 400
        assert resp.json()["Type"] == "OAuth2Error"
        assert not app.state.authorizer.handoff.resolved

    def test_full_flow_opens_readiness_gate(self):
        settings = _settings()
        authorizer = OAuth2Authorizer("app-key", settings.redirect_uri, transport=_token_transport())
        app = create_app(settings, authorizer=authorizer)

        with TestClient(app) as http:
            assert http.get("/health").json()["status"] == "starting"

            location = http.get("/", follow_redirects=False).headers["location"]
            state = parse_qs(urlparse(location).query)["state"][0]
            resp = http.get("/oauth2/callback", params={"code": "auth-code", "state": state})
            assert resp.status_code == 200

            deadline = time.monotonic() + 2
            while not app.state.engine.readiness.is_ready and time.monotonic() < deadline:
                time.sleep(0.01)

            assert app.state.engine.readiness.is_ready
            assert http.get("/health").json()["authorization"] == "exchanged"

    def test_callback_page_escapes_account_id(self):
        settings = _settings()
        authorizer = OAuth2Authorizer(
            "app-key", settings.redirect_uri, transport=_token_transport("<script>x</script>"),
        )
        app = create_app(settings, authorizer=authorizer)
        http = TestClient(app)

        location = http.get("/", follow_redirects=False).headers["location"]
        state = parse_qs(urlparse(location).query)["state"][0]
        resp = http.get("/oauth2/callback", params={"code": "auth-code", "state": state})

        assert resp.status_code == 200
        assert "<script>" not in resp.text
        assert "&lt;script&gt;x&lt;/script&gt;" in resp.text


class TestAmbient:
    def test_missing_app_secret_logged_at_startup(self, caplog):
        settings = Settings(dropbox_app_key="app-key", dropbox_app_secret="", log_changes=False)
        authorizer = OAuth2Authorizer("app-key", settings.redirect_uri, transport=_token_transport())
        app = create_app(settings, authorizer=authorizer)

        with caplog.at_level(logging.INFO, logger="main"):
            with TestClient(app):
                pass

        errors = [r for r in caplog.records if r.name == "main" and r.levelno == logging.ERROR]
        assert any("DROPBOX_APP_SECRET" in r.getMessage() for r in errors)

    def test_request_line_logged_at_debug(self, caplog):
        app, _, _ = _build(ready=False)

        with caplog.at_level(logging.DEBUG, logger="api.middleware"):
            resp = TestClient(app).get("/update", params={"challenge": "foo"})

        assert "x-process-time" in resp.headers
        records = [r for r in caplog.records if r.name == "api.middleware"]
        assert records
        assert all(r.levelno == logging.DEBUG for r in records)
