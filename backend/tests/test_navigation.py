from hrms.auth.navigation import NAVIGATION, NavItem, item_is_visible, visible_navigation
from hrms.auth.permission_matrix import EMPTY_MATRIX, Module
from hrms.auth.route_guard import GuardOutcome
from hrms.auth.route_table import ROUTE_TABLE, guard_for

from authz_helpers import context_for


def labels(items: list[NavItem]) -> list[str]:
    return [item.label for item in items]


def child_labels(items: list[NavItem], group: str) -> list[str]:
    for item in items:
        if item.label == group:
            return labels(list(item.children))
    return []


def walk(items) -> list[NavItem]:
    found: list[NavItem] = []
    for item in items:
        found.append(item)
        found.extend(walk(item.children))
    return found


class TestVisibleNavigation:
    def test_admin_sees_every_group(self) -> None:
        assert labels(visible_navigation(context_for("admin"))) == labels(list(NAVIGATION))

    def test_employee_menu(self) -> None:
        menu = visible_navigation(context_for("employee"))
        assert labels(menu) == [
            "Dashboard",
            "Attendance Management",
            "Leave Management",
            "Payroll",
            "Expenses",
            "Assets",
        ]
        assert child_labels(menu, "Leave Management") == ["Apply Leave", "Leave Balance"]
        assert child_labels(menu, "Expenses") == ["Expense Claims"]

    def test_manager_menu(self) -> None:
        menu = visible_navigation(context_for("manager"))
        assert "Expenses" not in labels(menu)
        assert child_labels(menu, "Leave Management") == ["Leave Approvals"]

    def test_hr_tag_sees_employee_management(self) -> None:
        menu = visible_navigation(context_for("hr"))
        assert child_labels(menu, "Employee Management") == ["Employee List", "Register Employee"]
        assert "Organization Setup" not in labels(menu)

    def test_anonymous_sees_nothing(self) -> None:
        assert visible_navigation(context_for()) == []

    def test_loading_hides_module_items(self) -> None:
        menu = visible_navigation(context_for("admin", roles_loading=True))
        assert labels(menu) == ["Dashboard", "Role & Module Access Debug"]

    def test_unmoduled_items_honour_allow_list(self) -> None:
        debug = NavItem("Debug", path="/debug/roles", roles=("admin",))
        assert item_is_visible(debug, context_for("admin"))
        assert not item_is_visible(debug, context_for("employee"))

    def test_empty_matrix_leaves_only_unmoduled_items(self) -> None:
        menu = visible_navigation(context_for("admin", matrix=EMPTY_MATRIX))
        assert labels(menu) == ["Dashboard", "Role & Module Access Debug"]

    def test_groups_without_visible_children_are_dropped(self) -> None:
        group = NavItem(
            "Reports",
            roles=("manager",),
            module=Module.REPORTS,
            children=(NavItem("Payroll Reports", "/reports/payroll", ("finance",), Module.REPORTS),),
        )
        assert visible_navigation(context_for("manager"), (group,)) == []


class TestNavigationTable:
    def test_every_link_is_a_routed_page(self) -> None:
        for item in walk(NAVIGATION):
            if item.path is not None:
                assert item.path in ROUTE_TABLE, item.path

    def test_as_dict(self) -> None:
        item = NavItem("Assets", module=Module.ASSETS, children=(NavItem("My Assets", "/assets/my-assets"),))
        assert item.as_dict() == {
            "label": "Assets",
            "path": None,
            "module": "assets",
            "children": [{"label": "My Assets", "path": "/assets/my-assets", "module": None, "children": []}],
        }


class TestNavigationMatchesGuards:
    def test_every_visible_link_renders_for_builtin_roles(self) -> None:
        blocked = []
        for role in ("admin", "hr", "manager", "finance", "employee"):
            context = context_for(role)
            for item in walk(visible_navigation(context)):
                if item.path is None:
                    continue
                decision = guard_for(item.path).evaluate(context.auth, context)
                if decision.outcome is not GuardOutcome.RENDER:
                    blocked.append((role, item.path, decision.reason))
        assert blocked == []

    def test_manager_check_in_link_renders(self) -> None:
        context = context_for("manager")
        assert "Check-In/Out" in child_labels(visible_navigation(context), "Attendance Management")
        decision = guard_for("/attendance/capture").evaluate(context.auth, context)
        assert decision.outcome is GuardOutcome.RENDER
