"""
Application settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # ── Dropbox app ─────────────────────────────────────────────────────
    dropbox_app_key: str = ""           # OAuth2 client id
    dropbox_app_secret: str = ""        # webhook HMAC secret
    dropbox_root_folder: str = "/apps/content-selection/"   # prefix for relative paths
    token_access_type: str = "online"   # "offline" also returns a refresh_token

    # ── OAuth redirect ──────────────────────────────────────────────────
    oauth_redirect_base: str = "http://localhost:8000"
    oauth_callback_path: str = "/oauth2/callback"

    # ── Sync engine ─────────────────────────────────────────────────────
    sync_root_path: str = ""            # folder watched for changes ("" = root folder)
    sync_failure_policy: str = "abort"  # "abort" | "isolate"
    http_timeout_seconds: float = 30.0

    # ── Subscribers ─────────────────────────────────────────────────────
    log_changes: bool = True
    propagate_source: str = ""          # file name mirrored to each target
    propagate_targets: List[str] = []

    # ── Server ──────────────────────────────────────────────────────────
    port: int = 8000
    host: str = "0.0.0.0"
    debug: bool = False

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }

    @property
    def redirect_uri(self) -> str:
        return f"{self.oauth_redirect_base.rstrip('/')}{self.oauth_callback_path}"


config = Settings()
