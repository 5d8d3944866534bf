"""Permission gates consulted before a capture starts."""

from __future__ import annotations

from typing import Protocol

from meterscan.config import settings


class PermissionGate(Protocol):
    """Reports whether everything a capture needs has been granted."""

    def has_permissions(self) -> bool: ...


class AllowListPermissionGate:
    """Admits a user when they are on the allow list, or when the list is empty."""

    def __init__(self, user_id: int, allowed_ids: list[int] | None = None):
        self._user_id = user_id
        self._allowed_ids = (
            settings.ALLOWED_USER_IDS if allowed_ids is None else allowed_ids
        )

    def has_permissions(self) -> bool:
        if not self._allowed_ids:
            return True
        return self._user_id in self._allowed_ids
