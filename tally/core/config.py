
import logging
import secrets

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "Tally"
    app_env: str = "development"  # "development" | "test" | "production"
    app_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    # Database (any async SQLAlchemy URL; SQLite for local dev and tests)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./tally_dev.db",
        alias="DATABASE_URL",
    )
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # Sessions
    session_secret: str | None = Field(default=None, alias="SESSION_SECRET")
    session_cookie_name: str = Field(default="tally_session", alias="SESSION_COOKIE_NAME")
    session_ttl_days: int = Field(default=7, alias="SESSION_TTL_DAYS")

    # werkzeug method string; scrypt is tuned well above 100ms per verification
    password_hash_method: str = Field(
        default="scrypt:32768:8:1", alias="PASSWORD_HASH_METHOD",
    )

    # First admin account (no public self-registration)
    bootstrap_admin_email: str | None = Field(default=None, alias="BOOTSTRAP_ADMIN_EMAIL")
    bootstrap_admin_password: str | None = Field(default=None, alias="BOOTSTRAP_ADMIN_PASSWORD")

    # Uploads and import
    max_upload_size_mb: int = 10
    upload_dir: str = Field(default="uploads", alias="UPLOAD_DIR")
    import_commit_batch_size: int = Field(default=200, alias="IMPORT_COMMIT_BATCH_SIZE")
    import_start_delay_seconds: float = Field(default=0.0, alias="IMPORT_START_DELAY_SECONDS")

    # Reporting
    recent_upload_window_days: int = Field(default=30, alias="RECENT_UPLOAD_WINDOW_DAYS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }

    @model_validator(mode="after")
    def _require_session_secret(self) -> "Settings":
        if not self.session_secret:
            if self.app_env == "production":
                raise ValueError("SESSION_SECRET must be set when APP_ENV=production")
            # Per-process random secret: sessions do not survive a restart.
            self.session_secret = secrets.token_hex(32)
            logger.warning("SESSION_SECRET not set; using an ephemeral secret (%s)", self.app_env)
        return self

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def cookie_secure(self) -> bool:
        return self.app_env == "production"

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_ttl_days * 24 * 3600


settings = Settings()
