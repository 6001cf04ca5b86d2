"""Classify failed protected requests and replay them after renewal."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..context import RequestContext
from ..exceptions import AuthenticationError, SteriTrackError
from ..http import UNAUTHORIZED, HttpResponse
from .broadcast import SessionBroadcaster
from .refresh import RefreshCoordinator
from .store import CredentialStore

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..dispatch import Dispatcher

logger = logging.getLogger(__name__)


def is_renewal_eligible(error: BaseException, context: RequestContext) -> bool:
    """Return True when ``error`` means the access credential expired.

    Transport failures carry no status and are never eligible, neither are
    credential-issuing routes nor requests that were already replayed once.
    """
    if not isinstance(error, AuthenticationError):
        return False
    if error.status_code != UNAUTHORIZED:
        return False
    return not context.is_auth_route and not context.retried


class ReplayEngine:
    """Send protected requests, recovering once from an expired credential."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        coordinator: RefreshCoordinator,
        store: CredentialStore,
        broadcaster: SessionBroadcaster,
    ) -> None:
        self._dispatcher = dispatcher
        self._coordinator = coordinator
        self._store = store
        self._broadcaster = broadcaster

    def send(self, context: RequestContext) -> HttpResponse:
        try:
            return self._dispatcher.send(context)
        except SteriTrackError as exc:
            if not is_renewal_eligible(exc, context):
                raise
            original = exc

        replay = context.mark_retried()
        if not self._store.refresh_token:
            logger.warning(
                "Access credential rejected for %s %s and no renewal credential is stored",
                context.method.upper(),
                context.path,
            )
            self._store.clear()
            self._broadcaster.announce_session_ended()
            raise original

        token = self._coordinator.request_refresh()
        if token is None:
            raise original
        return self.send(replay.with_token(token))
