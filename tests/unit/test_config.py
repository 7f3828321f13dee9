import pytest

from wallboard.core.config import Settings
from wallboard.domain.enums import StoreBackend


def test_defaults_use_builtin_workflow() -> None:
    settings = Settings(_env_file=None)

    workflow = settings.status_workflow()

    assert settings.store_backend == StoreBackend.MEMORY
    assert workflow.offline_status == "Offline"
    assert workflow.allowed_next("Offline") == ("Available",)


def test_workflow_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(
        "STATUS_TRANSITIONS_RAW",
        '{"Ready": ["Busy", "Away"], "Busy": ["Ready"], "Away": ["Ready"]}',
    )
    monkeypatch.setenv("OFFLINE_STATUS", "Away")
    monkeypatch.setenv("INITIAL_STATUS", "Ready")

    workflow = Settings(_env_file=None).status_workflow()

    assert workflow.statuses == ("Ready", "Busy", "Away")
    assert workflow.offline_status == "Away"
    assert workflow.initial_status == "Ready"


def test_workflow_rejects_offline_status_outside_graph(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STATUS_TRANSITIONS_RAW", '{"Ready": ["Busy"], "Busy": ["Ready"]}')

    with pytest.raises(ValueError):
        Settings(_env_file=None).status_workflow()


def test_database_url_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///wallboard.db")

    assert Settings(_env_file=None).database_url == "sqlite+aiosqlite:///wallboard.db"


def test_database_url_built_from_parts() -> None:
    settings = Settings(_env_file=None, postgres_host="db", postgres_db="wb")

    assert settings.database_url.startswith("postgresql+asyncpg://")
    assert settings.database_url.endswith("@db:5432/wb")


@pytest.mark.parametrize(
    ("origins", "hosts"),
    [
        ("*", "wallboard.example.com"),
        ("https://wallboard.example.com", "*"),
        ("", "wallboard.example.com"),
    ],
)
def test_production_rejects_open_security_settings(origins: str, hosts: str) -> None:
    settings = Settings(
        _env_file=None,
        app_env="production",
        cors_allowed_origins_raw=origins,
        trusted_hosts_raw=hosts,
    )

    with pytest.raises(ValueError):
        settings.validate_security_settings()


def test_production_accepts_explicit_settings() -> None:
    settings = Settings(
        _env_file=None,
        app_env="production",
        cors_allowed_origins_raw="https://wallboard.example.com",
        trusted_hosts_raw="wallboard.example.com",
    )

    settings.validate_security_settings()
