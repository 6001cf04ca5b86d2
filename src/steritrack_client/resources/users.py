"""User helpers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .base import ResourceBase, unwrap_rows


class UsersResource(ResourceBase):
    """Manage operators (ADMIN, TECH, AUDITOR)."""

    def list(self, params: Mapping[str, Any] | None = None) -> Any:
        return self._get("/users", params=params)

    def get(self, user_id: str) -> dict[str, Any]:
        return self._get(f"/users/{user_id}")

    def create(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._post("/users", payload)

    def update(self, user_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._patch(f"/users/{user_id}", payload)

    def delete(self, user_id: str) -> None:
        self._delete(f"/users/{user_id}")

    def technicians(self) -> list[dict[str, Any]]:
        return unwrap_rows(self._get("/users", params={"role": "TECH", "perPage": 100}))

    def verify_badge(self, badge_code: str) -> dict[str, Any]:
        return self._post("/users/verify-badge", {"badgeCode": badge_code})
