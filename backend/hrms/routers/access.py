from fastapi import APIRouter, Depends

from ..auth.authorization_context import AuthorizationContext
from ..auth.navigation import visible_navigation
from ..auth.permission_resolver import (
    modules_for_roles,
    primary_role,
    resolve_matrix_key,
    role_module_detail,
)
from ..auth.route_table import ROUTE_TABLE
from ..dependencies import require_authenticated
from ..errors import NotFoundError
from ..schemas.access import (
    AccessSummaryRead,
    ModulePermissionRead,
    NavItemRead,
    RoleAccessRead,
)

router = APIRouter(prefix="/api/access", tags=["access"])


def _permissions_read(detail) -> dict[str, ModulePermissionRead]:
    return {
        module: ModulePermissionRead(**permission.as_dict())
        for module, permission in (detail or {}).items()
    }


@router.get("/me", response_model=AccessSummaryRead)
async def my_access(
    context: AuthorizationContext = Depends(require_authenticated),
) -> AccessSummaryRead:
    user = context.user
    role = primary_role(user) or ""
    reachable = [
        path
        for path, rule in ROUTE_TABLE.items()
        if not rule.public and rule.query.is_satisfied_by(context)
    ]
    return AccessSummaryRead(
        user_id=user.id,
        name=user.name,
        roles=list(user.roles),
        primary_role=role,
        matrix_key=resolve_matrix_key(role),
        accessible_modules=context.accessible_modules(),
        permissions=_permissions_read(role_module_detail(role, matrix=context.matrix)),
        routes=reachable,
        navigation=[
            NavItemRead.model_validate(item.as_dict()) for item in visible_navigation(context)
        ],
    )


@router.get("/roles/{role_name}", response_model=RoleAccessRead)
async def role_access(
    role_name: str,
    context: AuthorizationContext = Depends(require_authenticated),
) -> RoleAccessRead:
    detail = role_module_detail(role_name, matrix=context.matrix)
    if detail is None:
        raise NotFoundError(
            f"Role '{role_name}' is not configured",
            details={"matrix_key": resolve_matrix_key(role_name)},
        )
    return RoleAccessRead(
        role=role_name,
        matrix_key=resolve_matrix_key(role_name) or "",
        modules=modules_for_roles([role_name], matrix=context.matrix),
        permissions=_permissions_read(detail),
    )
