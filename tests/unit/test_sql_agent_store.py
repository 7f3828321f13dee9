from collections.abc import AsyncIterator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from wallboard.domain.exceptions import DuplicateAgentCodeError
from wallboard.domain.models import Agent, StatusChange
from wallboard.infra.db.models import Base
from wallboard.infra.store import AgentFilter, SqlAgentStore


@pytest_asyncio.fixture
async def store() -> AsyncIterator[SqlAgentStore]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield SqlAgentStore(async_sessionmaker(engine, autoflush=False, expire_on_commit=False))
    await engine.dispose()


@pytest.mark.asyncio
async def test_create_and_load_by_code(store: SqlAgentStore) -> None:
    created = await store.create(
        Agent(agent_code="A001", name="Somchai", status="Offline", skills=["Thai"])
    )

    loaded = await store.get_by_code("A001")

    assert loaded is not None
    assert loaded.id == created.id
    assert loaded.skills == ["Thai"]
    assert loaded.is_online is False


@pytest.mark.asyncio
async def test_duplicate_code_rejected(store: SqlAgentStore) -> None:
    await store.create(Agent(agent_code="A001", name="Somchai", status="Offline"))

    with pytest.raises(DuplicateAgentCodeError):
        await store.create(Agent(agent_code="A001", name="Other", status="Offline"))

    assert len(await store.list()) == 1


@pytest.mark.asyncio
async def test_update_round_trips_status_change(store: SqlAgentStore) -> None:
    created = await store.create(Agent(agent_code="A001", name="Somchai", status="Offline"))
    now = datetime.now(UTC)

    updated = await store.update(
        created.id,
        {
            "status": "Available",
            "last_status_change": StatusChange(timestamp=now, reason="ready"),
            "is_online": True,
            "connection_ref": "conn-1",
        },
    )

    assert updated is not None
    assert updated.status == "Available"
    assert updated.connection_ref == "conn-1"
    assert updated.last_status_change is not None
    assert updated.last_status_change.reason == "ready"


@pytest.mark.asyncio
async def test_list_filters_and_mark_all_offline(store: SqlAgentStore) -> None:
    first = await store.create(
        Agent(agent_code="A001", name="Somchai", status="Offline", department="Sales")
    )
    await store.create(Agent(agent_code="A002", name="Malee", status="Offline"))
    await store.update(first.id, {"is_online": True, "status": "Available", "connection_ref": "c1"})

    assert [agent.agent_code for agent in await store.list(AgentFilter(department="Sales"))] == [
        "A001"
    ]
    assert len(await store.list(AgentFilter(is_online=True))) == 1

    await store.mark_all_offline("Offline")

    reset = await store.get(first.id)
    assert reset is not None
    assert reset.is_online is False
    assert reset.connection_ref is None
    assert reset.status == "Offline"
    assert reset.last_status_change is not None
    assert reset.last_status_change.reason == "restart"


@pytest.mark.asyncio
async def test_delete(store: SqlAgentStore) -> None:
    created = await store.create(Agent(agent_code="A001", name="Somchai", status="Offline"))

    assert await store.delete(created.id)
    assert not await store.delete(created.id)
    assert await store.get(created.id) is None
