from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from wallboard.domain.enums import AgentStatus, StoreBackend
from wallboard.domain.state_machine import StatusWorkflow


class Settings(BaseSettings):
    app_env: str = "local"
    api_port: int = 8000
    log_level: str = "INFO"

    store_backend: StoreBackend = StoreBackend.MEMORY
    postgres_host: str = "127.0.0.1"
    postgres_port: int = 5432
    postgres_db: str = "agent_wallboard"
    postgres_user: str = "wallboard_user"
    postgres_password: str = "wallboard_password"
    database_url_override: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL_OVERRIDE", "DATABASE_URL"),
    )
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_auto_create: bool = False
    seed_demo_agents: bool = False

    status_transitions_raw: str = ""
    offline_status: str = AgentStatus.OFFLINE.value
    initial_status: str | None = None
    notify_superseded_connections: bool = False

    cors_allowed_origins_raw: str = "http://127.0.0.1:5500,http://localhost:5500,http://localhost:3000"
    trusted_hosts_raw: str = "127.0.0.1,localhost,testserver"
    force_https: bool = False

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def cors_allowed_origins(self) -> list[str]:
        return [
            origin.strip()
            for origin in self.cors_allowed_origins_raw.split(",")
            if origin.strip()
        ]

    @property
    def trusted_hosts(self) -> list[str]:
        return [
            host.strip() for host in self.trusted_hosts_raw.split(",") if host.strip()
        ]

    def status_workflow(self) -> StatusWorkflow:
        if not self.status_transitions_raw.strip():
            default = StatusWorkflow.default()
            return StatusWorkflow.from_mapping(
                default.transitions,
                offline_status=self.offline_status,
                initial_status=self.initial_status,
            )
        return StatusWorkflow.from_json(
            self.status_transitions_raw,
            offline_status=self.offline_status,
            initial_status=self.initial_status,
        )

    def validate_security_settings(self) -> None:
        if self.app_env.lower() != "production":
            return

        if not self.cors_allowed_origins:
            raise ValueError(
                "CORS_ALLOWED_ORIGINS_RAW must define explicit origins in production."
            )
        if "*" in self.cors_allowed_origins:
            raise ValueError("Wildcard CORS origin is not allowed in production.")
        if not self.trusted_hosts:
            raise ValueError(
                "TRUSTED_HOSTS_RAW must define explicit hosts in production."
            )
        if "*" in self.trusted_hosts:
            raise ValueError("Wildcard trusted host is not allowed in production.")


@lru_cache
def get_settings() -> Settings:
    return Settings()
