"""OTP Auth Service — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── Database ──────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./otp_auth.db"

    # ── OTP ───────────────────────────────────────────────
    otp_expiry_minutes: int = 5
    otp_retention_hours: int = 24

    # ── Upstream commerce platform ────────────────────────
    commerce_api_base_url: str = "http://localhost:9000/api/v1"
    commerce_api_token: str = ""
    commerce_timeout_seconds: float = 10.0

    # ── App ───────────────────────────────────────────────
    app_name: str = "OTP Auth Service"
    debug: bool = False
    cors_allow_origins: list[str] = ["*"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Default settings instance used by the module-level app
settings = Settings()
