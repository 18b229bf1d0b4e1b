from __future__ import annotations

from typing import Iterable

from domain.collaborators import AdminGate


class StaticAdminGate(AdminGate):
    def __init__(self, admins: Iterable[str]) -> None:
        self._admins = frozenset(admins)

    def has_admin_capability(self, caller: str) -> bool:
        return caller in self._admins


__all__ = ["StaticAdminGate"]
