"""Role-configuration sources: the built-in table or a remote roles endpoint."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from ..errors import RoleConfigError
from .permission_matrix import (
    DENY_ALL,
    PERMISSION_MATRIX,
    Action,
    Module,
    ModulePermission,
    PermissionMatrix,
    freeze_matrix,
)
from .permission_resolver import parse_module, resolve_matrix_key

logger = logging.getLogger("hrms.role_config")


def _coerce_permission(raw: Any) -> ModulePermission:
    if not isinstance(raw, Mapping):
        raise RoleConfigError(
            "Module permissions must be an object", details={"value": repr(raw)}
        )
    return ModulePermission(**{action.value: raw.get(action.value) is True for action in Action})


def _role_entries(payload: Any) -> list[tuple[str, Any]]:
    # {"success": true, "roles": [...]} | [...] | {"Admin": {...modules}}
    if isinstance(payload, Mapping) and "roles" in payload:
        payload = payload["roles"]
    elif isinstance(payload, Mapping):
        return [(str(name), modules) for name, modules in payload.items()]

    if not isinstance(payload, list):
        raise RoleConfigError(
            "Unexpected role configuration shape",
            details={"type": type(payload).__name__},
        )

    entries: list[tuple[str, Any]] = []
    for item in payload:
        if not isinstance(item, Mapping):
            raise RoleConfigError("Role entry must be an object")
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            raise RoleConfigError("Role entry is missing a name")
        entries.append((name, item.get("modules") or {}))
    return entries


def parse_role_config(payload: Any) -> PermissionMatrix:
    """
    Convert a roles API payload into a permission matrix.

    Role names are normalized the same way user role tags are, so a role
    named "hr" or "HR Manager" lands on the same row. Unknown modules are
    dropped; absent modules and absent actions are denied.

    Raises:
        RoleConfigError: If the payload does not have a recognised shape
    """
    rows: dict[str, dict[Module, ModulePermission]] = {}
    for name, modules in _role_entries(payload):
        key = resolve_matrix_key(name)
        if key is None:
            continue
        if not isinstance(modules, Mapping):
            raise RoleConfigError(
                f"Modules of role '{name}' must be an object",
                details={"role": name},
            )
        row = rows.setdefault(key, {})
        for module_name, raw in modules.items():
            module = parse_module(str(module_name))
            if module is None:
                logger.warning(
                    "Dropping unknown module role=%s module=%s", name, module_name
                )
                continue
            row[module] = _coerce_permission(raw)

    for row in rows.values():
        for module in Module:
            row.setdefault(module, DENY_ALL)
    return freeze_matrix(rows)


class StaticRoleConfigSource:
    def __init__(self, matrix: PermissionMatrix = PERMISSION_MATRIX) -> None:
        self._matrix = matrix

    async def fetch(self) -> PermissionMatrix:
        return self._matrix


class HttpRoleConfigSource:
    """Loads roles from the HRMS roles endpoint with bounded retries."""

    def __init__(
        self,
        *,
        url: str,
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        headers: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout_seconds = timeout_seconds
        self._max_retries = max_retries
        self._headers = dict(headers or {})
        self._transport = transport

    async def fetch(self) -> PermissionMatrix:
        payload = await self._get_json()
        return parse_role_config(payload)

    async def _get_json(self) -> Any:
        last_error: httpx.RequestError | None = None
        for attempt in range(self._max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout_seconds,
                    headers=self._headers,
                    transport=self._transport,
                ) as client:
                    response = await client.get(self._url)
                    response.raise_for_status()
                    return response.json()
            except httpx.HTTPStatusError as exc:
                raise RoleConfigError(
                    "Role configuration request failed",
                    details={"status_code": exc.response.status_code},
                ) from exc
            except httpx.RequestError as exc:
                last_error = exc
                logger.warning(
                    "Role configuration fetch failed url=%s attempt=%s/%s error=%s",
                    self._url,
                    attempt + 1,
                    self._max_retries + 1,
                    exc,
                )
                if attempt >= self._max_retries:
                    break
                await asyncio.sleep(0.5 * (attempt + 1))
            except ValueError as exc:
                raise RoleConfigError("Role configuration is not valid JSON") from exc

        raise RoleConfigError(
            "Role configuration endpoint unreachable",
            details={"error": str(last_error)},
        ) from last_error
