import pytest

from hrms.auth import permission_resolver as resolver
from hrms.auth.permission_matrix import EMPTY_MATRIX, Action, Module, ModulePermission

from authz_helpers import make_user


class TestRoleNormalization:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("admin", "Admin"),
            ("ADMIN", "Admin"),
            ("finance", "Finance"),
            ("admin-delegate", "Admin delegate"),
            ("hr-manager", "Hr manager"),
            ("", ""),
        ],
    )
    def test_normalize_role_name(self, raw: str, expected: str) -> None:
        assert resolver.normalize_role_name(raw) == expected

    def test_normalization_is_idempotent(self) -> None:
        for raw in ("admin", "HR Manager", "admin-delegate", "eMPLOYEE"):
            once = resolver.normalize_role_name(raw)
            assert resolver.normalize_role_name(once) == once

    @pytest.mark.parametrize("tag", ["hr", "HR", "Hr", "hr-manager", "HR Manager"])
    def test_hr_tags_reach_hr_manager_row(self, tag: str) -> None:
        assert resolver.resolve_matrix_key(tag) == "HR Manager"

    def test_unknown_key_is_passed_through(self) -> None:
        assert resolver.resolve_matrix_key("admin-delegate") == "Admin delegate"

    def test_non_string_role_has_no_key(self) -> None:
        assert resolver.resolve_matrix_key(None) is None


class TestCanPerform:
    def test_employee_can_view_attendance(self) -> None:
        assert resolver.can_perform(make_user("employee"), "attendance", "view")

    def test_employee_cannot_approve_leave(self) -> None:
        assert not resolver.can_perform(make_user("employee"), Module.LEAVE, Action.APPROVE)

    def test_module_name_is_lower_cased(self) -> None:
        assert resolver.can_perform(make_user("finance"), "PAYROLL", "edit")

    def test_hr_can_approve_leave(self) -> None:
        assert resolver.can_approve(make_user("hr"), Module.LEAVE)

    def test_shorthand_helpers(self) -> None:
        user = make_user("employee")
        assert resolver.can_view(user, Module.PAYROLL)
        assert resolver.can_create(user, Module.EXPENSES)
        assert resolver.can_edit(user, Module.EXPENSES)
        assert not resolver.can_approve(user, Module.EXPENSES)

    def test_delegate_role_is_denied_everything(self) -> None:
        user = make_user("admin-delegate")
        for module in Module:
            for action in Action:
                assert not resolver.can_perform(user, module, action)

    @pytest.mark.parametrize(
        ("module", "action"),
        [
            ("attendance", "delete"),
            ("canteen", "view"),
            (None, "view"),
            ("attendance", None),
            ("", ""),
        ],
    )
    def test_unknown_inputs_are_denied(self, module, action) -> None:
        assert resolver.can_perform(make_user("admin"), module, action) is False

    def test_missing_user_is_denied(self) -> None:
        assert resolver.can_perform(None, Module.PAYROLL, Action.VIEW) is False

    def test_empty_matrix_denies(self) -> None:
        assert not resolver.can_perform(
            make_user("admin"), Module.PAYROLL, Action.VIEW, matrix=EMPTY_MATRIX
        )

    def test_only_primary_role_is_consulted(self) -> None:
        user = make_user("manager", "employee")
        # Employee may create attendance records, Manager may not.
        assert resolver.role_can_perform("employee", Module.ATTENDANCE, Action.CREATE)
        assert not resolver.can_perform(user, Module.ATTENDANCE, Action.CREATE)

    def test_repeated_calls_agree(self) -> None:
        user = make_user("finance")
        results = {resolver.can_perform(user, Module.PAYROLL, Action.APPROVE) for _ in range(5)}
        assert results == {True}


class TestModuleAccess:
    def test_module_with_any_action_is_accessible(self) -> None:
        assert resolver.has_module_access(make_user("finance"), Module.EXPENSES)

    def test_all_false_module_is_not_accessible(self) -> None:
        assert not resolver.has_module_access(make_user("manager"), Module.ASSETS)

    def test_missing_user_has_no_access(self) -> None:
        assert not resolver.has_module_access(None, Module.REPORTS)


class TestAccessibleModules:
    def test_single_role(self) -> None:
        assert resolver.accessible_modules(make_user("manager")) == [
            "attendance",
            "employees",
            "leave",
            "payroll",
            "reports",
        ]

    def test_union_over_all_roles_is_sorted_and_unique(self) -> None:
        modules = resolver.accessible_modules(make_user("manager", "employee"))
        assert modules == sorted(set(modules))
        assert "expenses" in modules
        assert "assets" in modules

    def test_unknown_roles_contribute_nothing(self) -> None:
        assert resolver.accessible_modules(make_user("admin-delegate")) == []

    def test_missing_user(self) -> None:
        assert resolver.accessible_modules(None) == []


class TestRoleModuleDetail:
    def test_detail_is_keyed_by_module_name(self) -> None:
        detail = resolver.role_module_detail("employee")
        assert detail is not None
        assert list(detail) == sorted(module.value for module in Module)
        assert detail["attendance"] == ModulePermission(view=True, create=True)

    def test_casing_is_normalized(self) -> None:
        assert resolver.role_module_detail("FINANCE") == resolver.role_module_detail("Finance")

    def test_unknown_role_returns_none(self) -> None:
        assert resolver.role_module_detail("contractor") is None
