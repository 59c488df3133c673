import os
import threading
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()


class Settings(BaseModel):
    app_name: str = Field(default="HRMS")
    debug: bool = Field(default=False)
    secret_key: str | None = Field(default=None)
    algorithm: str = Field(default="HS256")
    login_path: str = Field(default="/login")
    dashboard_path: str = Field(default="/dashboard")
    session_cookie_name: str = Field(default="access_token")
    role_config_url: str | None = Field(default=None)
    role_config_timeout_seconds: float = Field(default=10.0)
    role_config_max_retries: int = Field(default=2)

    @classmethod
    def from_env(cls) -> "Settings":
        secret_key = os.getenv("SECRET_KEY", "").strip()
        if not secret_key:
            raise ValueError("SECRET_KEY environment variable must be set")

        login_path = os.getenv("LOGIN_PATH", cls.model_fields["login_path"].default).strip()
        dashboard_path = os.getenv(
            "DASHBOARD_PATH", cls.model_fields["dashboard_path"].default
        ).strip()
        for name, value in (("LOGIN_PATH", login_path), ("DASHBOARD_PATH", dashboard_path)):
            if not value.startswith("/"):
                raise ValueError(f"{name} must be an absolute path starting with '/'")
        if login_path == dashboard_path:
            raise ValueError("LOGIN_PATH and DASHBOARD_PATH must differ")

        role_config_url = os.getenv("ROLE_CONFIG_URL", "").strip() or None
        if role_config_url is not None:
            parsed = urlparse(role_config_url)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise ValueError("ROLE_CONFIG_URL must be a valid http/https URL")

        raw_timeout = os.getenv(
            "ROLE_CONFIG_TIMEOUT_SECONDS",
            str(cls.model_fields["role_config_timeout_seconds"].default),
        )
        try:
            role_config_timeout_seconds = float(raw_timeout)
        except ValueError as exc:
            raise ValueError("ROLE_CONFIG_TIMEOUT_SECONDS must be a number") from exc
        if role_config_timeout_seconds <= 0:
            raise ValueError("ROLE_CONFIG_TIMEOUT_SECONDS must be greater than 0")

        raw_retries = os.getenv(
            "ROLE_CONFIG_MAX_RETRIES",
            str(cls.model_fields["role_config_max_retries"].default),
        )
        try:
            role_config_max_retries = int(raw_retries)
        except ValueError as exc:
            raise ValueError("ROLE_CONFIG_MAX_RETRIES must be an integer") from exc
        if role_config_max_retries < 0:
            raise ValueError("ROLE_CONFIG_MAX_RETRIES must be greater than or equal to 0")

        session_cookie_name = os.getenv(
            "SESSION_COOKIE_NAME", cls.model_fields["session_cookie_name"].default
        ).strip()
        if not session_cookie_name:
            raise ValueError("SESSION_COOKIE_NAME must not be empty")

        return cls(
            app_name=os.getenv("APP_NAME", cls.model_fields["app_name"].default),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            secret_key=secret_key,
            algorithm=os.getenv("ALGORITHM", cls.model_fields["algorithm"].default),
            login_path=login_path,
            dashboard_path=dashboard_path,
            session_cookie_name=session_cookie_name,
            role_config_url=role_config_url,
            role_config_timeout_seconds=role_config_timeout_seconds,
            role_config_max_retries=role_config_max_retries,
        )


# Deferred so the module imports without a populated environment; validation
# happens on first access (normally during startup).
_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Get settings instance, creating it on first access.

    Uses double-checked locking so concurrent first accesses build a single
    instance.

    Returns:
        Settings instance

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    global _settings_instance

    if _settings_instance is not None:
        return _settings_instance

    with _settings_lock:
        if _settings_instance is None:
            _settings_instance = Settings.from_env()

    return _settings_instance


def reset_settings() -> None:
    """Drop the cached instance so the next access re-reads the environment."""
    global _settings_instance
    with _settings_lock:
        _settings_instance = None


class _SettingsProxy:
    """Proxy to defer settings creation until first attribute access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)


settings = _SettingsProxy()  # type: ignore[assignment]
