from functools import lru_cache
from urllib.parse import urlparse

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Invite Gateway"
    app_env: str = "development"  # development, testing, production
    debug: bool = False

    # Security
    log_user_emails: bool = False  # Set to False in production for GDPR compliance

    # External data store (auth + Postgres + RPC)
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    datastore_timeout_seconds: float = 10.0

    # Public application origin, used for accept links and post-accept redirects
    app_origin: str | None = None
    accept_invite_path: str = "/accept-invite"
    post_accept_path: str = "/app?accepted=1"

    # Email (Resend)
    resend_api_key: str | None = None
    from_email: str | None = None
    email_brand: str = "Blueline Chatpilot"
    email_send_timeout_seconds: int = 10  # Timeout for email API calls

    # Metrics
    metrics_api_key: str | None = None  # If set, /metrics requires this key

    # Client session
    permission_cache_ttl_seconds: float = 30.0

    @field_validator("supabase_url")
    @classmethod
    def strip_supabase_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip().rstrip("/")

    @field_validator("app_origin")
    @classmethod
    def validate_app_origin(cls, v: str | None) -> str | None:
        """Accept only absolute http(s) origins; strip the trailing slash."""
        if v is None or not v.strip():
            return None
        parsed = urlparse(v.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"APP_ORIGIN must be an absolute http(s) URL, got '{v}'")
        return v.strip().rstrip("/")

    @field_validator("accept_invite_path", "post_accept_path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("Paths must start with '/'")
        return v

    @property
    def datastore_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def email_configured(self) -> bool:
        return bool(self.resend_api_key and self.from_email)


@lru_cache
def get_settings() -> Settings:
    return Settings()
