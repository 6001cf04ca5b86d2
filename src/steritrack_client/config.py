"""Configuration helpers for SteriTrack client."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

REFRESH_PATH = "/auth/refresh"
LOGIN_PATH = "/auth/login"
LOGOUT_PATH = "/auth/logout"
DEFAULT_CREDENTIAL_FILE = Path("~/.config/steritrack/credentials.json")


@dataclass(slots=True)
class ClientConfig:
    """Typed configuration for `SteriTrackClient`."""

    base_url: str
    verify_ssl: bool | str = True
    timeout: float = 30.0
    default_headers: Mapping[str, str] | None = None
    query_defaults: Mapping[str, str] | None = None
    refresh_path: str = REFRESH_PATH
    login_path: str = LOGIN_PATH
    logout_path: str = LOGOUT_PATH
    credential_file: Path | None = None

    def resolved_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.default_headers:
            headers.update(self.default_headers)
        return headers

    def resolved_query(self) -> dict[str, str]:
        return dict(self.query_defaults or {})
