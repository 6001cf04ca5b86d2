"""HTTP utilities for SteriTrack API access."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from typing import Any

import requests
from requests import Response, Session

from .exceptions import AuthenticationError, RequestError, TransportError, UnexpectedResponseError

UNAUTHORIZED = 401


@dataclass(slots=True)
class HttpResponse:
    """Typed response wrapper with helper accessors."""

    status_code: int
    data: Any
    headers: Mapping[str, str]


def ensure_success(response: Response) -> None:
    """Raise `RequestError` if the response signals a failure."""

    if 200 <= response.status_code < 300:
        return
    message = f"SteriTrack API error {response.status_code}: {response.text[:200]}"
    error_cls = AuthenticationError if response.status_code == UNAUTHORIZED else RequestError
    raise error_cls(
        message,
        status_code=response.status_code,
        details=response.text,
        response=response,
    )


def parse_json(response: Response) -> Any:
    """Parse JSON with helpful error context."""

    try:
        return response.json()
    except ValueError as exc:
        raise UnexpectedResponseError(
            "Response did not contain valid JSON", status_code=response.status_code
        ) from exc


def request(
    session: Session,
    method: str,
    url: str,
    *,
    params: Mapping[str, Any] | None = None,
    headers: MutableMapping[str, str] | None = None,
    json_payload: Any | None = None,
    timeout: float | tuple[float, float] | None = None,
    verify: bool | str = True,
) -> HttpResponse:
    """Make a request and return a parsed response envelope."""

    try:
        response = session.request(
            method=method,
            url=url,
            params=params,
            headers=headers,
            json=json_payload,
            timeout=timeout,
            verify=verify,
        )
    except requests.RequestException as exc:
        reason = str(exc).strip() or exc.__class__.__name__
        raise TransportError(
            f"Failed to communicate with SteriTrack API: {reason}", details=reason
        ) from exc
    ensure_success(response)

    data: Any = None
    if response.content:
        data = parse_json(response)

    return HttpResponse(status_code=response.status_code, data=data, headers=response.headers)
