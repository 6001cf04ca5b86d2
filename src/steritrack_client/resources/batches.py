"""Batch (lote) helpers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .base import ResourceBase


class BatchesResource(ResourceBase):
    def list(self, params: Mapping[str, Any] | None = None) -> Any:
        return self._get("/lotes", params=params)

    def create(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._post("/lotes", payload)

    def update(self, batch_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._put(f"/lotes/{batch_id}", payload)

    def delete(self, batch_id: str) -> None:
        self._delete(f"/lotes/{batch_id}")

    def history(self, batch_id: str) -> dict[str, Any]:
        return self._get(f"/lotes/{batch_id}/history")
