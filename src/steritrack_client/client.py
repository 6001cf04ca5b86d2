"""High-level SteriTrack REST client."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import requests
import urllib3
from urllib3.exceptions import InsecureRequestWarning

from .activity import ActivityCounter
from .auth.broadcast import SessionBroadcaster, Unsubscribe
from .auth.jwt import StoredBearerAuth
from .auth.refresh import RefreshCoordinator
from .auth.replay import ReplayEngine
from .auth.store import (
    ACCESS_TOKEN,
    AUTH_USER,
    REFRESH_TOKEN,
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
)
from .config import ClientConfig
from .context import RequestContext
from .dispatch import AuthenticatedDispatcher, CredentialDispatcher
from .exceptions import SessionError, SteriTrackError, UnexpectedResponseError
from .resources import (
    AlertsResource,
    BatchesResource,
    CyclesResource,
    MaterialsResource,
    UsersResource,
)

logger = logging.getLogger(__name__)


class SteriTrackClient:
    """Wrap SteriTrack REST endpoints and keep the session credential valid."""

    def __init__(
        self,
        *,
        base_url: str,
        store: CredentialStore | None = None,
        verify_ssl: bool | str = True,
        timeout: float = 30.0,
        default_headers: Mapping[str, str] | None = None,
        query_defaults: Mapping[str, str] | None = None,
        session: requests.Session | None = None,
        on_busy: Callable[[], None] | None = None,
        on_idle: Callable[[], None] | None = None,
        credential_file: str | Path | None = None,
    ) -> None:
        self.config = ClientConfig(
            base_url=base_url.rstrip("/"),
            verify_ssl=verify_ssl,
            timeout=timeout,
            default_headers=default_headers,
            query_defaults=query_defaults,
            credential_file=Path(credential_file) if credential_file else None,
        )
        self._suppress_insecure_warning_if_needed()
        self._session = session or requests.Session()
        self.store = store or self._default_store()
        self.activity = ActivityCounter(on_busy=on_busy, on_idle=on_idle)
        self.broadcaster = SessionBroadcaster()
        self._api = AuthenticatedDispatcher(
            self.config, self._session, self.activity, StoredBearerAuth(self.store)
        )
        self._auth_api = CredentialDispatcher(self.config, self._session, self.activity)
        self.coordinator = RefreshCoordinator(
            self.store,
            self.broadcaster,
            self._auth_api,
            refresh_path=self.config.refresh_path,
        )
        self._replay = ReplayEngine(self._api, self.coordinator, self.store, self.broadcaster)
        self.materials = MaterialsResource(self)
        self.batches = BatchesResource(self)
        self.cycles = CyclesResource(self)
        self.users = UsersResource(self)
        self.alerts = AlertsResource(self)

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> SteriTrackClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - passthrough
        self.close()

    # Public API --------------------------------------------------------------
    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_payload: Any | None = None,
    ) -> Any:
        context = RequestContext(
            method=method,
            path=path if path.startswith("/") or "://" in path else f"/{path}",
            params=params,
            json_payload=json_payload,
        )
        return self._replay.send(context).data

    def login(self, email: str, password: str) -> dict[str, Any]:
        """Exchange user credentials for tokens and store them.

        The login response may spell token keys in camelCase or snake_case.
        Returns the signed-in user's profile (empty when the server sends
        none).
        """
        response = self._auth_api.send(
            RequestContext(
                method="POST",
                path=self.config.login_path,
                json_payload={"email": email, "password": password},
            )
        )
        payload = response.data if isinstance(response.data, Mapping) else {}
        tokens = payload.get("tokens") if isinstance(payload.get("tokens"), Mapping) else payload
        access = tokens.get("accessToken") or tokens.get("access_token")
        if not isinstance(access, str) or not access:
            raise UnexpectedResponseError(
                "Login response did not include an access token",
                status_code=response.status_code,
                details=payload,
            )
        refresh = tokens.get("refreshToken") or tokens.get("refresh_token")
        user = payload.get("user") if isinstance(payload.get("user"), Mapping) else {}
        self.sign_in(access, refresh, user=dict(user))
        logger.info("Signed in as %s", user.get("email") or email)
        return dict(user)

    def sign_in(
        self,
        access_token: str,
        refresh_token: str | None = None,
        *,
        user: Mapping[str, Any] | None = None,
    ) -> None:
        """Store an already issued credential pair."""
        self.store.update(
            {
                ACCESS_TOKEN: access_token,
                REFRESH_TOKEN: refresh_token,
                AUTH_USER: dict(user) if user else None,
            }
        )

    def logout(self) -> None:
        """Tell the server to revoke the renewal credential, then forget everything locally."""
        refresh_token = self.store.refresh_token
        if refresh_token:
            try:
                self._auth_api.send(
                    RequestContext(
                        method="POST",
                        path=self.config.logout_path,
                        json_payload={"refreshToken": refresh_token},
                    )
                )
            except SteriTrackError as exc:
                logger.warning("Server-side logout failed: %s", exc)
        self.store.clear()

    def on_session_ended(self, callback: Callable[[], None]) -> Unsubscribe:
        return self.broadcaster.subscribe(callback)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.store.access_token)

    @property
    def current_user(self) -> dict[str, Any]:
        if not self.is_authenticated:
            raise SessionError("Not signed in")
        user = self.store.get(AUTH_USER)
        return dict(user) if isinstance(user, Mapping) else {}

    def close(self) -> None:
        self._session.close()

    # Internal helpers -------------------------------------------------------
    def _default_store(self) -> CredentialStore:
        if self.config.credential_file:
            return FileCredentialStore(self.config.credential_file)
        return MemoryCredentialStore()

    def _suppress_insecure_warning_if_needed(self) -> None:
        if isinstance(self.config.verify_ssl, bool) and not self.config.verify_ssl:
            urllib3.disable_warnings(InsecureRequestWarning)
