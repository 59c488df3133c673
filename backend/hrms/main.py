import asyncio
import logging
import os
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth.authorization_context import AuthorizationProvider
from .auth.role_config import HttpRoleConfigSource
from .config import Settings, get_settings, settings
from .errors import (
    AppError,
    AuthError,
    GuardPending,
    GuardRedirect,
    InternalError,
    NotFoundError,
    ValidationError,
    error_payload,
    resolve_error_code,
)
from .routers import access, pages

log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()


def _resolve_log_level(value: str) -> int:
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else logging.INFO


log_level = _resolve_log_level(log_level_name)

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
logger = logging.getLogger("hrms")
logger.setLevel(log_level)

LOADING_PAGE = (
    "<!doctype html><html><head>"
    '<meta http-equiv="refresh" content="{retry}">'
    "<title>Loading...</title></head>"
    '<body><div class="loading"><p>Loading...</p></div></body></html>'
)


def build_authorization_provider(config: Settings) -> AuthorizationProvider:
    if not config.role_config_url:
        return AuthorizationProvider()
    source = HttpRoleConfigSource(
        url=config.role_config_url,
        timeout_seconds=config.role_config_timeout_seconds,
        max_retries=config.role_config_max_retries,
    )
    # Bounds the whole fetch including retries and back-off.
    total_timeout = config.role_config_timeout_seconds * (config.role_config_max_retries + 1) + (
        0.5 * config.role_config_max_retries * (config.role_config_max_retries + 1) / 2
    )
    return AuthorizationProvider(source, timeout_seconds=total_timeout)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application")
    if settings.debug:
        logger.warning("DEBUG=true; do not use in production")

    provider: AuthorizationProvider = app.state.authorization_provider
    task: asyncio.Task | None = None
    if provider.loading:
        task = asyncio.create_task(provider.load())
        app.state.role_config_task = task

    yield

    if task is not None and not task.done():
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task


SAFE_HTTP_MESSAGES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: ValidationError.message,
    status.HTTP_401_UNAUTHORIZED: AuthError.message,
    status.HTTP_404_NOT_FOUND: NotFoundError.message,
    status.HTTP_422_UNPROCESSABLE_ENTITY: ValidationError.message,
}


def _log_error(request: Request, status_code: int, code: str, message: str, exc: Exception | None = None) -> None:
    request_id = request.headers.get("x-request-id")
    log_message = f"[{code}] path={request.url.path} request_id={request_id or 'n/a'} message={message}"
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(log_message, exc_info=exc)
    else:
        logger.warning(log_message, exc_info=exc)


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    _log_error(request, exc.status_code, exc.code, exc.message, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(exc.code, exc.message, exc.details),
    )


async def handle_http_exception(
    request: Request, exc: HTTPException | StarletteHTTPException
) -> JSONResponse:
    safe_message = SAFE_HTTP_MESSAGES.get(
        exc.status_code,
        InternalError.message if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else "Request failed",
    )
    detail = exc.detail
    detail_message = detail if isinstance(detail, str) else ""
    log_message = detail_message.strip() or safe_message
    code = resolve_error_code(exc.status_code)
    _log_error(request, exc.status_code, code, log_message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(code, safe_message, detail),
        headers=getattr(exc, "headers", None),
    )


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    message = "Request validation failed"
    _log_error(request, status.HTTP_422_UNPROCESSABLE_ENTITY, ValidationError.code, message, exc)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_payload(ValidationError.code, message, exc.errors()),
    )


async def handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
    log_message = str(exc).strip() or "Invalid request"
    _log_error(request, status.HTTP_400_BAD_REQUEST, ValidationError.code, log_message, exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_payload(ValidationError.code, "Invalid request", log_message),
    )


async def handle_guard_redirect(request: Request, exc: GuardRedirect) -> RedirectResponse:
    logger.info(
        "Redirecting path=%s location=%s reason=%s",
        request.url.path,
        exc.location,
        exc.reason,
    )
    # 303 so the browser issues a plain GET and the guarded URL is not replayed.
    return RedirectResponse(exc.location, status_code=status.HTTP_303_SEE_OTHER)


async def handle_guard_pending(request: Request, exc: GuardPending) -> HTMLResponse:
    return HTMLResponse(
        LOADING_PAGE.format(retry=exc.retry_after_seconds),
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        headers={"Retry-After": str(exc.retry_after_seconds), "Cache-Control": "no-store"},
    )


def create_app(provider: AuthorizationProvider | None = None) -> FastAPI:
    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
    app.state.authorization_provider = provider or build_authorization_provider(get_settings())

    app.include_router(access.router)
    app.include_router(pages.router)

    @app.get("/health", include_in_schema=False)
    async def health() -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "ok"})

    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(ValueError, handle_value_error)
    app.add_exception_handler(GuardRedirect, handle_guard_redirect)
    app.add_exception_handler(GuardPending, handle_guard_pending)
    return app


app = create_app()
