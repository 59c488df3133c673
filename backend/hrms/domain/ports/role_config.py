from __future__ import annotations

from typing import Protocol

from ...auth.permission_matrix import PermissionMatrix


class RoleConfigSource(Protocol):
    """Supplies the role -> module -> action table at runtime."""

    async def fetch(self) -> PermissionMatrix:
        ...
