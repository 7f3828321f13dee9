from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol
from uuid import UUID

from wallboard.domain.models import Agent

# Fields an update may touch; ``id``, ``agent_code`` and ``created_at`` are fixed.
MUTABLE_FIELDS = frozenset(
    {
        "name",
        "email",
        "department",
        "skills",
        "status",
        "is_online",
        "connection_ref",
        "login_time",
        "last_status_change",
        "updated_at",
    }
)


@dataclass(frozen=True, slots=True)
class AgentFilter:
    status: str | None = None
    department: str | None = None
    is_online: bool | None = None

    def matches(self, agent: Agent) -> bool:
        if self.status is not None and agent.status != self.status:
            return False
        if self.department is not None and agent.department != self.department:
            return False
        if self.is_online is not None and agent.is_online != self.is_online:
            return False
        return True


def check_changes(changes: Mapping[str, Any]) -> None:
    unknown = sorted(set(changes).difference(MUTABLE_FIELDS))
    if unknown:
        raise ValueError(f"Cannot update agent fields: {', '.join(unknown)}")


class AgentStore(Protocol):
    """Persistence for agent records.

    Every method applies atomically: an update either writes all of ``changes``
    or nothing. Returned agents are detached copies.
    """

    async def get(self, agent_id: UUID) -> Agent | None: ...

    async def get_by_code(self, agent_code: str) -> Agent | None: ...

    async def list(self, filters: AgentFilter | None = None) -> list[Agent]: ...

    async def create(self, agent: Agent) -> Agent: ...

    async def update(self, agent_id: UUID, changes: Mapping[str, Any]) -> Agent | None: ...

    async def delete(self, agent_id: UUID) -> bool: ...

    async def mark_all_offline(self, offline_status: str) -> None: ...
