"""Material helpers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .base import ResourceBase


class MaterialsResource(ResourceBase):
    """Work with reusable instruments tracked through reprocessing."""

    def list(self, params: Mapping[str, Any] | None = None) -> Any:
        return self._get("/materials", params=params)

    def get(self, material_id: str) -> dict[str, Any]:
        return self._get(f"/materials/{material_id}")

    def create(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._post("/materials", payload)

    def update(self, material_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._put(f"/materials/{material_id}", payload)

    def delete(self, material_id: str) -> None:
        self._delete(f"/materials/{material_id}")

    def history(self, material_id: str) -> dict[str, Any]:
        return self._get(f"/materials/{material_id}/history")

    def resolve_code(self, code: str) -> dict[str, Any]:
        """Resolve a scanned QR/barcode value to a material or batch."""
        return self._get("/search/resolve", params={"code": code})
