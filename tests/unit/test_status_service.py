from collections.abc import Mapping
from typing import Any
from uuid import uuid4

import pytest

from wallboard.core.locks import KeyedLocks
from wallboard.domain.exceptions import IllegalTransitionError, InvalidStatusError
from wallboard.domain.models import Agent
from wallboard.domain.state_machine import StatusWorkflow
from wallboard.infra.realtime.channels import DASHBOARD_CHANNEL, agent_channel
from wallboard.infra.realtime.hub import InMemoryRealtimeHub
from wallboard.infra.store import InMemoryAgentStore
from wallboard.services.dashboard import DashboardAggregator
from wallboard.services.errors import AgentNotFoundError
from wallboard.services.status_service import StatusTransitionEngine


class RecordingConnection:
    def __init__(self, connection_id: str) -> None:
        self.connection_id = connection_id
        self.received: list[dict[str, Any]] = []

    async def send_json(self, data: Mapping[str, Any]) -> None:
        self.received.append(dict(data))

    def events(self) -> list[str]:
        return [envelope["event"] for envelope in self.received]


def build_engine(
    workflow: StatusWorkflow | None = None,
    agents: list[Agent] | None = None,
) -> tuple[StatusTransitionEngine, InMemoryAgentStore, InMemoryRealtimeHub]:
    workflow = workflow or StatusWorkflow.default()
    store = InMemoryAgentStore(agents or [])
    hub = InMemoryRealtimeHub()
    dashboard = DashboardAggregator(store, workflow, realtime=hub)
    engine = StatusTransitionEngine(
        store, workflow, KeyedLocks(), realtime=hub, dashboard=dashboard
    )
    return engine, store, hub


@pytest.mark.asyncio
async def test_allowed_transition_updates_status_and_last_change() -> None:
    agent = Agent(agent_code="A001", name="Somchai", status="Offline")
    engine, store, _ = build_engine(agents=[agent])

    updated = await engine.transition(agent.id, "Available", reason="shift start")

    assert updated.status == "Available"
    assert updated.last_status_change is not None
    assert updated.last_status_change.reason == "shift start"
    assert updated.updated_at == updated.last_status_change.timestamp
    stored = await store.get(agent.id)
    assert stored is not None and stored.status == "Available"


@pytest.mark.asyncio
async def test_illegal_transition_leaves_state_untouched() -> None:
    agent = Agent(agent_code="A001", name="Somchai", status="Offline")
    engine, store, _ = build_engine(agents=[agent])
    await engine.transition(agent.id, "Available")
    before = await store.get(agent.id)

    with pytest.raises(IllegalTransitionError) as exc_info:
        await engine.transition(agent.id, "Offline")

    after = await store.get(agent.id)
    assert exc_info.value.valid_next == ("Active", "Wrap Up", "Not Ready")
    assert after == before
    assert after is not None and after.status == "Available"


@pytest.mark.asyncio
async def test_unknown_status_rejected() -> None:
    agent = Agent(agent_code="A001", name="Somchai", status="Offline")
    engine, store, _ = build_engine(agents=[agent])

    with pytest.raises(InvalidStatusError):
        await engine.transition(agent.id, "Lunch")

    stored = await store.get(agent.id)
    assert stored is not None and stored.status == "Offline"


@pytest.mark.asyncio
async def test_unknown_agent_rejected() -> None:
    engine, _, _ = build_engine()

    with pytest.raises(AgentNotFoundError):
        await engine.transition(uuid4(), "Available")


@pytest.mark.asyncio
async def test_status_change_notifies_agent_and_dashboard() -> None:
    agent = Agent(agent_code="A001", name="Somchai", status="Offline")
    engine, _, hub = build_engine(agents=[agent])
    own = RecordingConnection("own")
    dashboard = RecordingConnection("dashboard")
    other = RecordingConnection("other")
    for connection in (own, dashboard, other):
        await hub.connect(connection)
    await hub.subscribe("own", agent_channel("A001"))
    await hub.subscribe("dashboard", DASHBOARD_CHANNEL)

    await engine.transition(agent.id, "Available", reason="ready")

    assert own.events() == ["agentStatusChanged"]
    assert dashboard.events() == ["agentStatusChanged", "dashboardUpdate"]
    assert other.received == []
    payload = own.received[0]["payload"]
    assert payload["agentCode"] == "A001"
    assert payload["status"] == "Available"
    assert payload["lastStatusChange"]["reason"] == "ready"
    assert payload["id"] == str(agent.id)


@pytest.mark.asyncio
async def test_walk_of_custom_graph_only_follows_edges() -> None:
    workflow = StatusWorkflow.from_mapping(
        {"Idle": ["Ringing"], "Ringing": ["Talking", "Idle"], "Talking": ["Idle"]},
        offline_status="Idle",
    )
    agent = Agent(agent_code="B001", name="Ops", status="Idle")
    engine, store, _ = build_engine(workflow=workflow, agents=[agent])
    attempts = ["Talking", "Ringing", "Ringing", "Talking", "Ringing", "Idle"]
    applied: list[tuple[str, str]] = []

    for target in attempts:
        current = (await store.get(agent.id)).status
        try:
            await engine.transition(agent.id, target)
        except IllegalTransitionError:
            continue
        applied.append((current, target))

    assert applied == [("Idle", "Ringing"), ("Ringing", "Talking"), ("Talking", "Idle")]
    for current, target in applied:
        assert target in workflow.transitions[current]
