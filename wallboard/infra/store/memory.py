import asyncio
import copy
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any
from uuid import UUID

from wallboard.domain.exceptions import DuplicateAgentCodeError
from wallboard.domain.models import Agent, StatusChange, utc_now
from wallboard.infra.store.base import AgentFilter, check_changes


def _detached(agent: Agent) -> Agent:
    return replace(agent, skills=list(agent.skills))


class InMemoryAgentStore:
    """Process-local agent table keyed by id, with a unique index on agent code."""

    def __init__(self, agents: Iterable[Agent] = ()) -> None:
        self._agents: dict[UUID, Agent] = {}
        self._ids_by_code: dict[str, UUID] = {}
        self._lock = asyncio.Lock()
        for agent in agents:
            if agent.agent_code in self._ids_by_code:
                raise DuplicateAgentCodeError(agent.agent_code)
            self._agents[agent.id] = _detached(agent)
            self._ids_by_code[agent.agent_code] = agent.id

    async def get(self, agent_id: UUID) -> Agent | None:
        agent = self._agents.get(agent_id)
        return _detached(agent) if agent is not None else None

    async def get_by_code(self, agent_code: str) -> Agent | None:
        agent_id = self._ids_by_code.get(agent_code)
        if agent_id is None:
            return None
        return await self.get(agent_id)

    async def list(self, filters: AgentFilter | None = None) -> list[Agent]:
        filters = filters or AgentFilter()
        return [
            _detached(agent) for agent in list(self._agents.values()) if filters.matches(agent)
        ]

    async def create(self, agent: Agent) -> Agent:
        async with self._lock:
            if agent.agent_code in self._ids_by_code:
                raise DuplicateAgentCodeError(agent.agent_code)
            stored = _detached(agent)
            self._agents[stored.id] = stored
            self._ids_by_code[stored.agent_code] = stored.id
            return _detached(stored)

    async def update(self, agent_id: UUID, changes: Mapping[str, Any]) -> Agent | None:
        check_changes(changes)
        async with self._lock:
            current = self._agents.get(agent_id)
            if current is None:
                return None
            # Swap in a whole new record so readers never see half of an update.
            updated = replace(current, **copy.deepcopy(dict(changes)))
            self._agents[agent_id] = updated
            return _detached(updated)

    async def delete(self, agent_id: UUID) -> bool:
        async with self._lock:
            agent = self._agents.pop(agent_id, None)
            if agent is None:
                return False
            self._ids_by_code.pop(agent.agent_code, None)
            return True

    async def mark_all_offline(self, offline_status: str) -> None:
        now = utc_now()
        async with self._lock:
            for agent_id, agent in list(self._agents.items()):
                if agent.is_online:
                    self._agents[agent_id] = replace(
                        agent,
                        is_online=False,
                        connection_ref=None,
                        status=offline_status,
                        last_status_change=StatusChange(timestamp=now, reason="restart"),
                        updated_at=now,
                    )
