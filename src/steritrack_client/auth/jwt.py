"""JWT bearer token authentication."""

from __future__ import annotations

from collections.abc import MutableMapping
from dataclasses import dataclass

from ..context import bearer_header
from .base import AuthStrategy
from .store import CredentialStore


@dataclass(slots=True)
class StoredBearerAuth(AuthStrategy):
    """Apply the access token currently held by a credential store."""

    store: CredentialStore

    def apply(self, headers: MutableMapping[str, str]) -> None:
        token = self.store.access_token
        if token:
            headers["Authorization"] = bearer_header(token)
