"""
DropboxClient — thin async wrapper over the Dropbox HTTP API.

The wrapped ``httpx.AsyncClient`` is the one produced by the OAuth2
handshake; it already carries the bearer token and the request timeout.
Nothing here retries: a failed call raises and the caller decides.
"""

from __future__ import annotations

import json
import logging
from typing import Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from connectors.models import (
    DownloadArg,
    FileEntry,
    Folder,
    GetLatestCursorArg,
    GetMetadataArg,
    LatestCursor,
    ListFolderArg,
    ListFolderContinueArg,
    UploadArg,
)
from core.errors import RemoteProviderError, SerializationError

logger = logging.getLogger(__name__)

API_URL = "https://api.dropboxapi.com/2"
CONTENT_URL = "https://content.dropboxapi.com/2"

M = TypeVar("M", bound=BaseModel)


class DropboxClient:
    """Dropbox files API used by the sync engine and the subscribers."""

    def __init__(self, http: httpx.AsyncClient, root_folder: str = "") -> None:
        self.http = http
        self.root_folder = root_folder

    def resolve_path(self, path: str) -> str:
        """Absolute paths pass through; relative ones live under the root folder."""
        if path.startswith("/"):
            return path
        root = self.root_folder.rstrip("/")
        return f"{root}/{path}" if path else root

    # ── metadata / listing ──────────────────────────────────────────────

    async def describe_file(self, path: str) -> FileEntry:
        arg = GetMetadataArg(path=self.resolve_path(path))
        return await self._rpc("/files/get_metadata", arg, FileEntry)

    async def get_latest_cursor(self, path: str = "") -> str:
        arg = GetLatestCursorArg(path=self.resolve_path(path))
        latest = await self._rpc("/files/list_folder/get_latest_cursor", arg, LatestCursor)
        return latest.cursor

    async def list_folder(self, path: str = "", cursor: str = "") -> Folder:
        """
        List changes under ``path``, or since ``cursor`` when one is given.

        Pages are drained while ``has_more`` is set, so the returned folder
        holds every entry up to the final cursor.
        """
        if cursor:
            return await self.continue_folder(cursor)

        page = await self._rpc(
            "/files/list_folder", ListFolderArg(path=self.resolve_path(path)), Folder,
        )
        return await self._drain(page)

    async def continue_folder(self, cursor: str) -> Folder:
        """
        Changes since ``cursor``. Always uses ``list_folder/continue``, even
        for an empty cursor, so a stored cursor never turns into a full listing.
        """
        page = await self._rpc(
            "/files/list_folder/continue", ListFolderContinueArg(cursor=cursor), Folder,
        )
        return await self._drain(page)

    async def _drain(self, page: Folder) -> Folder:
        entries = list(page.entries)
        while page.has_more:
            page = await self._rpc(
                "/files/list_folder/continue", ListFolderContinueArg(cursor=page.cursor), Folder,
            )
            entries.extend(page.entries)

        return Folder(cursor=page.cursor, entries=entries, has_more=False)

    # ── content ─────────────────────────────────────────────────────────

    async def download(self, path: str) -> bytes:
        arg = DownloadArg(path=self.resolve_path(path))
        resp = await self._send(
            f"{CONTENT_URL}/files/download",
            arg.path,
            headers={"Dropbox-API-Arg": arg.model_dump_json()},
        )
        return resp.content

    async def upload(self, path: str, data: bytes) -> None:
        arg = UploadArg(path=self.resolve_path(path))
        await self._send(
            f"{CONTENT_URL}/files/upload",
            arg.path,
            headers={
                "Dropbox-API-Arg": arg.model_dump_json(),
                "Content-Type": "application/octet-stream",
            },
            content=data,
        )
        logger.info("Uploaded %d bytes to %s", len(data), arg.path)

    # ── plumbing ────────────────────────────────────────────────────────

    async def _rpc(self, endpoint: str, arg: BaseModel, model: Type[M]) -> M:
        logger.debug("dropbox rpc: %s", endpoint)
        resp = await self._send(f"{API_URL}{endpoint}", endpoint, json=arg.model_dump())
        try:
            return model.model_validate(resp.json())
        except (json.JSONDecodeError, PydanticValidationError) as exc:
            raise SerializationError(f"error parsing {endpoint} response body: {exc}") from exc

    async def _send(self, url: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self.http.post(url, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteProviderError(None, path, f"error making request: {exc}") from exc

        if not resp.is_success:
            raise RemoteProviderError(resp.status_code, path, resp.text)
        return resp
