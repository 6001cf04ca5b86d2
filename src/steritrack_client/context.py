"""Per-request context carried through dispatch and replay."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

# /auth, /auth/..., /auth?...
_AUTH_PATH = re.compile(r"/auth(/|$|\?)", re.IGNORECASE)


def is_auth_path(path: str | None) -> bool:
    """Return True for credential-issuing endpoints such as login or refresh."""
    if not path:
        return False
    return bool(_AUTH_PATH.search(path))


def bearer_header(token: str) -> str:
    return f"Bearer {token}"


@dataclass(frozen=True, slots=True)
class RequestContext:
    """An outgoing call plus the once-only replay guard travelling with it."""

    method: str
    path: str
    params: Mapping[str, Any] | None = None
    json_payload: Any | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    retried: bool = False

    @property
    def is_auth_route(self) -> bool:
        return is_auth_path(self.path)

    def mark_retried(self) -> RequestContext:
        return replace(self, retried=True)

    def with_token(self, token: str) -> RequestContext:
        headers = dict(self.headers)
        headers["Authorization"] = bearer_header(token)
        return replace(self, headers=headers)
