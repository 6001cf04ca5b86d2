"""Single-flight renewal of the access credential."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING

from ..config import REFRESH_PATH
from ..context import RequestContext
from ..exceptions import SteriTrackError
from .broadcast import SessionBroadcaster
from .store import ACCESS_TOKEN, REFRESH_TOKEN, CredentialStore

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..dispatch import Dispatcher

logger = logging.getLogger(__name__)


class _Waiter:
    __slots__ = ("_event", "value")

    def __init__(self) -> None:
        self._event = threading.Event()
        self.value: str | None = None

    def deliver(self, value: str | None) -> None:
        self.value = value
        self._event.set()

    def wait(self) -> str | None:
        self._event.wait()
        return self.value


class RefreshCoordinator:
    """Make sure concurrent expiries share exactly one renewal call.

    The first caller of `request_refresh` while no episode is running becomes
    the initiator and performs the renewal request on the credential-issuing
    transport. Callers arriving while that episode runs are queued and
    receive the same settled value: the new access token, or ``None`` when
    renewal failed. The waiter list is detached under the lock before
    delivery, so a caller arriving during delivery opens a new episode.
    """

    def __init__(
        self,
        store: CredentialStore,
        broadcaster: SessionBroadcaster,
        transport: Dispatcher,
        *,
        refresh_path: str = REFRESH_PATH,
    ) -> None:
        self._store = store
        self._broadcaster = broadcaster
        self._transport = transport
        self._refresh_path = refresh_path
        self._lock = threading.Lock()
        self._in_progress = False
        self._waiters: list[_Waiter] = []

    @property
    def in_progress(self) -> bool:
        with self._lock:
            return self._in_progress

    @property
    def pending_waiters(self) -> int:
        with self._lock:
            return len(self._waiters)

    def request_refresh(self) -> str | None:
        waiter: _Waiter | None = None
        with self._lock:
            if self._in_progress:
                waiter = _Waiter()
                self._waiters.append(waiter)
            else:
                self._in_progress = True
        if waiter is not None:
            return waiter.wait()

        token: str | None = None
        try:
            token = self._renew()
        except Exception:
            logger.exception("Credential renewal raised an unexpected error")
            token = self._fail("unexpected error during renewal")
        finally:
            with self._lock:
                waiters, self._waiters = self._waiters, []
                self._in_progress = False
            for queued in waiters:
                queued.deliver(token)
        return token

    def _renew(self) -> str | None:
        refresh_token = self._store.refresh_token
        if not refresh_token:
            return self._fail("no renewal credential stored")

        logger.info("Starting credential renewal via %s", self._refresh_path)
        context = RequestContext(
            method="POST",
            path=self._refresh_path,
            json_payload={"refreshToken": refresh_token},
        )
        try:
            response = self._transport.send(context)
        except SteriTrackError as exc:
            return self._fail(f"renewal request failed: {exc}")

        payload = response.data if isinstance(response.data, Mapping) else {}
        access = payload.get("accessToken") or payload.get("access_token")
        if not isinstance(access, str) or not access:
            return self._fail("renewal response did not include an access token")
        rotated = payload.get("refreshToken") or payload.get("refresh_token") or refresh_token

        self._store.update({ACCESS_TOKEN: access, REFRESH_TOKEN: rotated})
        logger.info("Credential renewal succeeded")
        return access

    def _fail(self, reason: str) -> None:
        logger.warning("Credential renewal failed: %s; ending session", reason)
        try:
            self._store.clear()
        except OSError:
            logger.exception("Unable to clear stored credentials")
        self._broadcaster.announce_session_ended()
        return None
