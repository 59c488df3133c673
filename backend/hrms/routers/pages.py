"""HTML shells for every screen in the route table.

Page bodies belong to the front end; this router only decides whether the
shell is served, and to whom.
"""
from html import escape

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse

from ..auth.authorization_context import AuthorizationContext
from ..auth.navigation import NavItem, visible_navigation
from ..auth.route_table import ROUTE_TABLE, RouteRule
from ..config import settings
from ..dependencies import guard_route

router = APIRouter(tags=["pages"])


def _render_nav(items: list[NavItem]) -> str:
    if not items:
        return ""
    parts = ["<ul>"]
    for item in items:
        label = escape(item.label)
        link = f'<a href="{escape(item.path)}">{label}</a>' if item.path else label
        parts.append(f"<li>{link}{_render_nav(list(item.children))}</li>")
    parts.append("</ul>")
    return "".join(parts)


def render_page(rule: RouteRule, context: AuthorizationContext) -> str:
    user = context.user
    greeting = f"<p>Signed in as {escape(user.name or user.id)}</p>" if user else ""
    nav = _render_nav(visible_navigation(context)) if user else ""
    return (
        "<!doctype html><html><head>"
        f"<title>{escape(rule.title)} | {escape(settings.app_name)}</title>"
        "</head><body>"
        f"<nav>{nav}</nav>"
        f'<main data-page="{escape(rule.title)}"><h1>{escape(rule.title)}</h1>{greeting}</main>'
        "</body></html>"
    )


def _register(path: str, rule: RouteRule) -> None:
    async def page(
        context: AuthorizationContext = Depends(guard_route(path)),
    ) -> HTMLResponse:
        return HTMLResponse(render_page(rule, context))

    router.add_api_route(
        path,
        page,
        methods=["GET"],
        response_class=HTMLResponse,
        name=f"page:{path}",
    )


for _path, _rule in ROUTE_TABLE.items():
    _register(_path, _rule)


@router.get("/", include_in_schema=False)
async def root() -> RedirectResponse:
    return RedirectResponse(settings.login_path, status_code=303)
