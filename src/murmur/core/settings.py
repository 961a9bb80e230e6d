"""Runtime configuration for Murmur, read from the environment or a `.env` file."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Every option has an upper-case environment alias; only SECRET_KEY is required."""

    # Service identity
    app_name: str = Field(default="Murmur", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Token signing and diagnostics
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Persistence
    database_url: str = Field(default="sqlite:///./murmur.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Access tokens
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Object storage collaborator used for media cleanup
    storage_enabled: bool = Field(default=False, alias="STORAGE_ENABLED")
    storage_base_url: str | None = Field(default=None, alias="STORAGE_BASE_URL")
    storage_public_url: str | None = Field(default=None, alias="STORAGE_PUBLIC_URL")
    storage_api_token: str | None = Field(default=None, alias="STORAGE_API_TOKEN")
    storage_http_timeout_seconds: float = Field(
        default=10.0,
        alias="STORAGE_HTTP_TIMEOUT_SECONDS",
    )

    # Realtime transport
    ws_token_query_param: str = Field(default="token", alias="WS_TOKEN_QUERY_PARAM")
    ws_send_timeout_seconds: float = Field(default=5.0, alias="WS_SEND_TIMEOUT_SECONDS")

    # Browser clients
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """TEST_DATABASE_URL when USE_TEST_DATABASE is set, DATABASE_URL otherwise."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def storage_configured(self) -> bool:
        """Return True when media deletions should reach the storage service."""
        return self.storage_enabled and bool(self.storage_base_url)


settings = Settings()  # type: ignore[call-arg]
