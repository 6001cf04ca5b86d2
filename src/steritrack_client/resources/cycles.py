"""Reprocessing cycle helpers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .base import ResourceBase

STAGES = ("RECEBIMENTO", "LAVAGEM", "DESINFECCAO", "ESTERILIZACAO", "ARMAZENAMENTO")


class CyclesResource(ResourceBase):
    """Track materials through reception, washing, disinfection, sterilization and storage."""

    def list(self, params: Mapping[str, Any] | None = None) -> Any:
        return self._get("/cycles", params=params)

    def create(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._post("/cycles", payload)

    def delete(self, cycle_id: str) -> None:
        self._delete(f"/cycles/{cycle_id}")

    def update(self, cycle_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._patch(f"/cycles/{cycle_id}", payload)

    def update_stage(self, cycle_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        stage = payload.get("etapa")
        if stage is not None and stage not in STAGES:
            raise ValueError(f"Unknown stage {stage!r}; expected one of {', '.join(STAGES)}")
        return self._patch(f"/cycles/{cycle_id}/stage", payload)

    def create_for_batch(self, batch_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        # Older servers only expose POST /cycles/lote/{id}.
        return self._request_with_fallback(
            "POST",
            f"/lotes/{batch_id}/cycles",
            payload=payload,
            fallback_path=f"/cycles/lote/{batch_id}",
        )

    def stage_meta(self, cycle_id: str, kind: str) -> dict[str, Any]:
        return self._get(f"/cycles/{cycle_id}/stage-meta/{kind}")
