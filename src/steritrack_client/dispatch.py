"""Request dispatchers for authenticated and credential-issuing traffic."""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any
from urllib.parse import urljoin, urlparse

import requests

from .activity import ActivityCounter
from .auth.base import AuthStrategy
from .config import ClientConfig
from .context import RequestContext, is_auth_path
from .http import HttpResponse
from .http import request as http_request

logger = logging.getLogger(__name__)


class Dispatcher:
    """Send a `RequestContext` over a `requests.Session`."""

    def __init__(
        self,
        config: ClientConfig,
        session: requests.Session,
        activity: ActivityCounter,
    ) -> None:
        self.config = config
        self._session = session
        self._activity = activity

    def send(self, context: RequestContext) -> HttpResponse:
        url = self._resolve_url(context.path)
        headers = self._prepare_headers(context)
        params = self._prepare_params(context.params)
        tracked = self._tracks(context)
        if tracked:
            self._activity.begin()
        try:
            self._log_request(context, url)
            return http_request(
                self._session,
                context.method,
                url,
                params=params,
                headers=headers,
                json_payload=context.json_payload,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
            )
        finally:
            if tracked:
                self._activity.end()

    def _tracks(self, context: RequestContext) -> bool:
        return True

    def _apply_credentials(self, context: RequestContext, headers: MutableMapping[str, str]) -> None:
        return None

    def _resolve_url(self, path: str) -> str:
        parsed = urlparse(path)
        if parsed.scheme and parsed.netloc:
            return path
        relative_path = path.lstrip("/")
        return urljoin(f"{self.config.base_url}/", relative_path)

    def _prepare_headers(self, context: RequestContext) -> MutableMapping[str, str]:
        headers = self.config.resolved_headers()
        self._apply_credentials(context, headers)
        headers.update(context.headers)
        return headers

    def _prepare_params(self, params: Mapping[str, Any] | None) -> MutableMapping[str, Any]:
        merged: MutableMapping[str, Any] = self.config.resolved_query()
        if params:
            merged.update({key: value for key, value in params.items() if value is not None})
        return merged

    def _log_request(self, context: RequestContext, url: str) -> None:
        logger.info(
            "SteriTrack request %s %s (replay=%s)",
            context.method.upper(),
            url,
            context.retried,
        )


class AuthenticatedDispatcher(Dispatcher):
    """Attach the stored access credential to every protected request."""

    def __init__(
        self,
        config: ClientConfig,
        session: requests.Session,
        activity: ActivityCounter,
        auth_strategy: AuthStrategy,
    ) -> None:
        super().__init__(config, session, activity)
        self._auth = auth_strategy

    def _tracks(self, context: RequestContext) -> bool:
        return not is_auth_path(context.path)

    def _apply_credentials(self, context: RequestContext, headers: MutableMapping[str, str]) -> None:
        if not is_auth_path(context.path):
            self._auth.apply(headers)


class CredentialDispatcher(Dispatcher):
    """Transport for login and renewal calls; never attaches a credential."""
