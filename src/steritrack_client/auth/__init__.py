"""Credential handling for SteriTrack."""
from .base import AuthStrategy
from .broadcast import SessionBroadcaster
from .jwt import StoredBearerAuth
from .refresh import RefreshCoordinator
from .replay import ReplayEngine, is_renewal_eligible
from .store import (
    ACCESS_TOKEN,
    AUTH_USER,
    REFRESH_TOKEN,
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
)

__all__ = [
    "ACCESS_TOKEN",
    "AUTH_USER",
    "REFRESH_TOKEN",
    "AuthStrategy",
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "RefreshCoordinator",
    "ReplayEngine",
    "SessionBroadcaster",
    "StoredBearerAuth",
    "is_renewal_eligible",
]
