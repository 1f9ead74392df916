"""
Pydantic models for the Dropbox API: typed request arguments per operation
and the response shapes the sync engine consumes.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ═══════════════════════════════════════════════════════════════════════════════
# Responses
# ═══════════════════════════════════════════════════════════════════════════════


class SharingInfo(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    modified_by: Optional[str] = None
    parent_shared_folder_id: Optional[str] = None
    read_only: bool = False


class FileEntry(BaseModel):
    """
    One change reported by ``list_folder``: a file, folder or deletion.

    Folders and deletions carry only ``tag``, ``name`` and the paths.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    tag: str = Field(default="file", alias=".tag")
    id: Optional[str] = None
    name: str
    path_lower: Optional[str] = None
    path_display: Optional[str] = None
    rev: Optional[str] = None
    size: int = 0
    content_hash: Optional[str] = None
    client_modified: Optional[datetime] = None
    server_modified: Optional[datetime] = None
    is_downloadable: bool = True
    has_explicit_shared_members: bool = False
    sharing_info: Optional[SharingInfo] = None

    @property
    def modified_by(self) -> Optional[str]:
        return self.sharing_info.modified_by if self.sharing_info else None


class Folder(BaseModel):
    """A delta batch: ordered entries plus the cursor after them."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    cursor: str
    entries: List[FileEntry] = Field(default_factory=list)
    has_more: bool = False


class LatestCursor(BaseModel):
    cursor: str


class OAuth2Token(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    scope: Optional[str] = None
    account_id: Optional[str] = None
    uid: Optional[str] = None
    refresh_token: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════════════════
# Request arguments
# ═══════════════════════════════════════════════════════════════════════════════


class GetMetadataArg(BaseModel):
    path: str


class ListFolderArg(BaseModel):
    path: str
    recursive: bool = True


class ListFolderContinueArg(BaseModel):
    cursor: str


class GetLatestCursorArg(BaseModel):
    path: str
    recursive: bool = True


class DownloadArg(BaseModel):
    path: str


class UploadArg(BaseModel):
    path: str
    mode: str = "overwrite"
    mute: bool = False
