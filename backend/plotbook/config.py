from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SESSION_SECRET = "dev-change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    app_name: str = "Plotbook"
    app_version: str = "2026-10-01.v1"
    database_url: str = "sqlite:///./plotbook.db"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Sessions ----
    session_secret: str = DEFAULT_SESSION_SECRET
    session_algorithm: str = "HS256"
    session_exp_minutes: int = 60 * 24 * 7  # 7 days
    session_cookie_name: str = "plotbook_session"
    session_cookie_secure: int = 0
    session_cookie_samesite: str = "lax"

    # ---- Invitations ----
    invitation_ttl_days: int = 7
    app_url: str = "http://localhost:3000"

    # ---- Email (Resend) ----
    resend_api_key: str | None = None
    resend_base_url: str = "https://api.resend.com"
    email_from: str = "Plotbook <noreply@plotbook.local>"
    email_timeout_seconds: float = 10.0

    # ---- Page sizes (per endpoint, intentionally not unified) ----
    locations_default_limit: int = 100
    locations_max_limit: int = 1000
    saved_default_limit: int = 20
    saved_max_limit: int = 100
    activity_default_limit: int = 20
    activity_max_limit: int = 100

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        if is_prod:
            if self.session_secret == DEFAULT_SESSION_SECRET:
                raise ValueError("SECURITY: session_secret must be set in prod")

            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")


settings = Settings()
