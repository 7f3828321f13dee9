from datetime import UTC, datetime
from uuid import uuid4

import pytest

from wallboard.domain.exceptions import DuplicateAgentCodeError
from wallboard.domain.models import Agent, StatusChange
from wallboard.infra.store import AgentFilter, InMemoryAgentStore


def make_agent(code: str, **overrides) -> Agent:
    values = {
        "agent_code": code,
        "name": f"Agent {code}",
        "status": "Offline",
        "department": "Support",
    }
    values.update(overrides)
    return Agent(**values)


@pytest.fixture
def store() -> InMemoryAgentStore:
    return InMemoryAgentStore(
        [
            make_agent("A001", skills=["Thai"]),
            make_agent("A002", department="Sales", status="Available", is_online=True),
        ]
    )


@pytest.mark.asyncio
async def test_create_rejects_duplicate_code(store: InMemoryAgentStore) -> None:
    original = await store.get_by_code("A001")

    with pytest.raises(DuplicateAgentCodeError):
        await store.create(make_agent("A001", name="Impostor"))

    unchanged = await store.get_by_code("A001")
    assert unchanged is not None
    assert original is not None
    assert unchanged.id == original.id
    assert unchanged.name == "Agent A001"


@pytest.mark.asyncio
async def test_reads_return_detached_copies(store: InMemoryAgentStore) -> None:
    agent = await store.get_by_code("A001")
    assert agent is not None

    agent.status = "Available"
    agent.skills.append("English")

    fresh = await store.get(agent.id)
    assert fresh is not None
    assert fresh.status == "Offline"
    assert fresh.skills == ["Thai"]


@pytest.mark.asyncio
async def test_update_applies_all_changes(store: InMemoryAgentStore) -> None:
    agent = await store.get_by_code("A001")
    assert agent is not None
    now = datetime.now(UTC)

    updated = await store.update(
        agent.id,
        {
            "status": "Available",
            "last_status_change": StatusChange(timestamp=now, reason="shift start"),
            "updated_at": now,
        },
    )

    assert updated is not None
    assert updated.status == "Available"
    assert updated.last_status_change == StatusChange(timestamp=now, reason="shift start")


@pytest.mark.asyncio
async def test_update_rejects_immutable_fields(store: InMemoryAgentStore) -> None:
    agent = await store.get_by_code("A001")
    assert agent is not None

    with pytest.raises(ValueError):
        await store.update(agent.id, {"agent_code": "A999"})


@pytest.mark.asyncio
async def test_update_unknown_agent_returns_none(store: InMemoryAgentStore) -> None:
    assert await store.update(uuid4(), {"status": "Available"}) is None


@pytest.mark.asyncio
async def test_list_filters(store: InMemoryAgentStore) -> None:
    sales = await store.list(AgentFilter(department="Sales"))
    offline = await store.list(AgentFilter(status="Offline"))
    online = await store.list(AgentFilter(is_online=True))

    assert [agent.agent_code for agent in sales] == ["A002"]
    assert [agent.agent_code for agent in offline] == ["A001"]
    assert [agent.agent_code for agent in online] == ["A002"]
    assert len(await store.list()) == 2


@pytest.mark.asyncio
async def test_delete_frees_agent_code(store: InMemoryAgentStore) -> None:
    agent = await store.get_by_code("A001")
    assert agent is not None

    assert await store.delete(agent.id)
    assert not await store.delete(agent.id)
    assert await store.get_by_code("A001") is None

    recreated = await store.create(make_agent("A001"))
    assert recreated.id != agent.id


@pytest.mark.asyncio
async def test_mark_all_offline_clears_presence(store: InMemoryAgentStore) -> None:
    online = await store.get_by_code("A002")
    assert online is not None
    await store.update(online.id, {"connection_ref": "conn-1"})

    await store.mark_all_offline("Offline")

    agent = await store.get(online.id)
    assert agent is not None
    assert agent.is_online is False
    assert agent.connection_ref is None
    assert agent.status == "Offline"
    assert agent.last_status_change is not None
    assert agent.last_status_change.reason == "restart"
    assert agent.updated_at == agent.last_status_change.timestamp


def test_constructor_rejects_duplicate_codes() -> None:
    with pytest.raises(DuplicateAgentCodeError):
        InMemoryAgentStore([make_agent("A001"), make_agent("A001")])
