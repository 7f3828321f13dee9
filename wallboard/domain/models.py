from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class StatusChange:
    timestamp: datetime
    reason: str | None = None


@dataclass(slots=True)
class Agent:
    """Authoritative agent record as held by an ``AgentStore``.

    ``connection_ref`` only names the connection currently linked to the
    agent; the connection's lifecycle belongs to the transport.
    """

    agent_code: str
    name: str
    status: str
    email: str | None = None
    department: str | None = None
    skills: list[str] = field(default_factory=list)
    is_online: bool = False
    connection_ref: str | None = None
    login_time: datetime | None = None
    last_status_change: StatusChange | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True, slots=True)
class ConnectionSession:
    connection_id: str
    agent_id: UUID
    agent_code: str
    agent_name: str
    login_time: datetime
