"""Alert helpers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .base import ResourceBase


class AlertsResource(ResourceBase):
    """Read and triage process alerts (failed disinfection, expiring storage, ...)."""

    def list(self, params: Mapping[str, Any] | None = None) -> Any:
        return self._get("/alerts", params=params)

    def counts(self) -> dict[str, Any]:
        return self._get("/alerts/counts")

    def acknowledge(self, alert_id: str) -> dict[str, Any]:
        return self._patch(f"/alerts/{alert_id}/ack")

    def resolve(self, alert_id: str) -> dict[str, Any]:
        return self._patch(f"/alerts/{alert_id}/resolve")

    def comments(self, alert_id: str, params: Mapping[str, Any] | None = None) -> Any:
        return self._get(f"/alerts/{alert_id}/comments", params=params)

    def add_comment(self, alert_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._post(f"/alerts/{alert_id}/comments", payload)

    def stats(self, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return self._get("/alerts/stats", params=params)
