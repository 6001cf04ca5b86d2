"""High-level SteriTrack client entrypoints."""
from .client import SteriTrackClient
from .config import ClientConfig
from .exceptions import SteriTrackError

__all__ = ["SteriTrackClient", "ClientConfig", "SteriTrackError"]
