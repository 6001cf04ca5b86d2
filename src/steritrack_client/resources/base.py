"""Common helpers for resource wrappers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ..exceptions import RequestError

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..client import SteriTrackClient


def unwrap_rows(payload: Any) -> list[dict[str, Any]]:
    """Return list rows from either a bare list or a ``{"data": [...]}`` page."""
    if isinstance(payload, Mapping):
        payload = payload.get("data")
    if not isinstance(payload, list):
        return []
    return [row for row in payload if isinstance(row, Mapping)]


class ResourceBase:
    """Provide shared helpers for resource modules."""

    def __init__(self, client: SteriTrackClient) -> None:
        self._client = client

    def _get(self, path: str, *, params: Mapping[str, Any] | None = None) -> Any:
        return self._client.request("GET", path, params=params)

    def _post(self, path: str, payload: Any | None = None) -> Any:
        return self._client.request("POST", path, json_payload=payload)

    def _put(self, path: str, payload: Any) -> Any:
        return self._client.request("PUT", path, json_payload=payload)

    def _patch(self, path: str, payload: Any | None = None) -> Any:
        return self._client.request("PATCH", path, json_payload=payload)

    def _delete(self, path: str) -> Any:
        return self._client.request("DELETE", path)

    def _request_with_fallback(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        payload: Any | None = None,
        fallback_path: str | None = None,
        recoverable_statuses: tuple[int, ...] = (404,),
    ) -> Any:
        try:
            return self._client.request(method, path, params=params, json_payload=payload)
        except RequestError as exc:
            can_retry = (
                fallback_path and fallback_path != path and exc.status_code in recoverable_statuses
            )
            if can_retry:
                return self._client.request(
                    method, fallback_path, params=params, json_payload=payload
                )
            raise
