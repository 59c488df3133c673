from pydantic import BaseModel, Field


class ModulePermissionRead(BaseModel):
    view: bool
    create: bool
    edit: bool
    approve: bool


class NavItemRead(BaseModel):
    label: str
    path: str | None = None
    module: str | None = None
    children: list["NavItemRead"] = Field(default_factory=list)


class AccessSummaryRead(BaseModel):
    user_id: str
    name: str
    roles: list[str]
    primary_role: str
    matrix_key: str | None
    accessible_modules: list[str]
    permissions: dict[str, ModulePermissionRead]
    routes: list[str]
    navigation: list[NavItemRead]


class RoleAccessRead(BaseModel):
    role: str
    matrix_key: str
    modules: list[str]
    permissions: dict[str, ModulePermissionRead]
