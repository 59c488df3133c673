import httpx
import pytest

from hrms.auth.permission_matrix import DENY_ALL, FULL_ACCESS, Module, ModulePermission
from hrms.auth.role_config import HttpRoleConfigSource, StaticRoleConfigSource, parse_role_config
from hrms.errors import RoleConfigError

ROLE_CONFIG_URL = "https://hrms.example.com/api/roles"

ROLES_PAYLOAD = {
    "success": True,
    "roles": [
        {
            "name": "admin",
            "modules": {module.value: {"view": True, "create": True, "edit": True, "approve": True} for module in Module},
        },
        {
            "name": "HR Manager",
            "modules": {
                "Leave": {"view": True, "approve": True},
                "canteen": {"view": True},
            },
        },
    ],
}


class TestParseRoleConfig:
    def test_roles_envelope(self) -> None:
        matrix = parse_role_config(ROLES_PAYLOAD)
        assert set(matrix) == {"Admin", "HR Manager"}
        assert all(matrix["Admin"][module] == FULL_ACCESS for module in Module)

    def test_module_names_are_lower_cased_and_unknown_ones_dropped(self) -> None:
        row = parse_role_config(ROLES_PAYLOAD)["HR Manager"]
        assert row[Module.LEAVE] == ModulePermission(view=True, approve=True)
        assert set(row) == set(Module)

    def test_undeclared_modules_are_denied(self) -> None:
        row = parse_role_config(ROLES_PAYLOAD)["HR Manager"]
        assert row[Module.PAYROLL] == DENY_ALL

    def test_plain_list(self) -> None:
        matrix = parse_role_config([{"name": "employee", "modules": {"assets": {"view": True}}}])
        assert matrix["Employee"][Module.ASSETS] == ModulePermission(view=True)

    def test_name_keyed_mapping(self) -> None:
        matrix = parse_role_config({"finance": {"payroll": {"view": True, "edit": True}}})
        assert matrix["Finance"][Module.PAYROLL] == ModulePermission(view=True, edit=True)

    def test_hr_tag_resolves_to_hr_manager_row(self) -> None:
        matrix = parse_role_config({"hr": {"leave": {"approve": True}}})
        assert list(matrix) == ["HR Manager"]

    def test_only_literal_true_grants(self) -> None:
        matrix = parse_role_config({"employee": {"leave": {"view": "yes", "create": 1, "edit": True}}})
        assert matrix["Employee"][Module.LEAVE] == ModulePermission(edit=True)

    @pytest.mark.parametrize(
        "payload",
        [
            "roles",
            {"roles": "admin"},
            {"roles": [{"modules": {}}]},
            {"roles": ["admin"]},
            {"admin": ["payroll"]},
            {"admin": {"payroll": True}},
        ],
    )
    def test_malformed_payloads(self, payload) -> None:
        with pytest.raises(RoleConfigError):
            parse_role_config(payload)

    def test_result_is_read_only(self) -> None:
        matrix = parse_role_config(ROLES_PAYLOAD)
        with pytest.raises(TypeError):
            matrix["Admin"] = {}  # type: ignore[index]


class TestStaticRoleConfigSource:
    @pytest.mark.anyio
    async def test_returns_configured_matrix(self) -> None:
        matrix = parse_role_config(ROLES_PAYLOAD)
        assert await StaticRoleConfigSource(matrix).fetch() is matrix


class TestHttpRoleConfigSource:
    @pytest.mark.anyio
    async def test_fetches_and_parses(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=ROLES_PAYLOAD)

        source = HttpRoleConfigSource(
            url=ROLE_CONFIG_URL,
            headers={"Authorization": "Bearer service-token"},
            transport=httpx.MockTransport(handler),
        )
        matrix = await source.fetch()

        assert set(matrix) == {"Admin", "HR Manager"}
        assert seen[0].url == ROLE_CONFIG_URL
        assert seen[0].headers["Authorization"] == "Bearer service-token"

    @pytest.mark.anyio
    async def test_error_status_is_not_retried(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(503)

        source = HttpRoleConfigSource(url=ROLE_CONFIG_URL, transport=httpx.MockTransport(handler))

        with pytest.raises(RoleConfigError) as exc:
            await source.fetch()

        assert exc.value.details == {"status_code": 503}
        assert calls == 1

    @pytest.mark.anyio
    async def test_connection_errors_are_retried(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json=ROLES_PAYLOAD)

        source = HttpRoleConfigSource(
            url=ROLE_CONFIG_URL, max_retries=1, transport=httpx.MockTransport(handler)
        )

        assert "Admin" in await source.fetch()
        assert calls == 2

    @pytest.mark.anyio
    async def test_unreachable_after_retries(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        source = HttpRoleConfigSource(
            url=ROLE_CONFIG_URL, max_retries=0, transport=httpx.MockTransport(handler)
        )

        with pytest.raises(RoleConfigError, match="unreachable"):
            await source.fetch()

    @pytest.mark.anyio
    async def test_invalid_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>login</html>")

        source = HttpRoleConfigSource(url=ROLE_CONFIG_URL, transport=httpx.MockTransport(handler))

        with pytest.raises(RoleConfigError, match="not valid JSON"):
            await source.fetch()
