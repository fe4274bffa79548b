"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Agency Hub API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)
    app_base_url: str = Field(
        default="http://localhost:3000",
        description="Public URL of the web app, used to build invitation links",
    )

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/agency_hub",
        description="PostgreSQL connection URL with asyncpg driver",
    )
    database_pool_size: int = Field(default=5)
    database_max_overflow: int = Field(default=10)
    database_behind_pooler: bool = Field(
        default=False,
        description="Set when connecting through a transaction-mode pooler",
    )

    # Supabase
    supabase_url: str = Field(
        default="",
        description="Supabase project URL (e.g. https://xyzabc.supabase.co)",
    )

    # JWT Authentication
    jwt_secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="Secret key for JWT signing (used for HS256 fallback and tests)",
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_minutes: int = Field(default=30)

    # Workspace hint
    workspace_hint_backend: str = Field(
        default="cookie",
        description="'cookie' for a signed per-browser hint, 'memory' for a process-local map",
    )
    workspace_cookie_name: str = Field(default="current-workspace-id")
    workspace_cookie_max_age: int = Field(
        default=60 * 60 * 24 * 365,
        description="Lifetime of the workspace hint cookie in seconds",
    )
    workspace_hint_cache_size: int = Field(
        default=10_000,
        description="Maximum entries kept by the in-memory workspace hint store",
    )

    # Invitations
    invitation_expiry_days: int = Field(default=7)
    invitation_create_limit: int = Field(
        default=20,
        description="Invitations a single user may create per window",
    )
    invitation_accept_limit: int = Field(
        default=10,
        description="Accept attempts a single user may make per window",
    )
    invitation_rate_window_seconds: int = Field(default=3600)
    invitation_rate_storage_uri: str = Field(
        default="async+memory://",
        description="limits storage for invitation counters, e.g. async+redis://host:6379",
    )

    # Email
    mail_backend: str = Field(
        default="log",
        description="'smtp' to deliver mail, 'log' to only log it",
    )
    smtp_host: str = Field(default="localhost")
    smtp_port: int = Field(default=587)
    smtp_username: str = Field(default="")
    smtp_password: str = Field(default="")
    smtp_use_tls: bool = Field(default=True)
    smtp_from_email: str = Field(default="no-reply@agencyhub.local")
    smtp_from_name: str = Field(default="Agency Hub")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def supabase_jwks_url(self) -> str:
        """JWKS endpoint for ES256 token verification."""
        if self.supabase_url:
            return f"{self.supabase_url.rstrip('/')}/auth/v1/.well-known/jwks.json"
        return ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme.

        Render and other providers supply a standard ``postgresql://`` URL.
        SQLAlchemy's async engine requires ``postgresql+asyncpg://``.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )
    trusted_proxies: str = Field(
        default="",
        description="Comma-separated peer addresses allowed to set X-Forwarded-For",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def trusted_proxies_list(self) -> list[str]:
        """Parse trusted proxy addresses into a list."""
        return [proxy.strip() for proxy in self.trusted_proxies.split(",") if proxy.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
