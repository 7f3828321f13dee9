from datetime import datetime
from uuid import UUID

from pydantic import Field

from wallboard.schemas.common import CamelModel


class StatusChangeResponse(CamelModel):
    timestamp: datetime
    reason: str | None = None


class AgentResponse(CamelModel):
    id: UUID
    agent_code: str
    name: str
    email: str | None
    department: str | None
    skills: list[str]
    status: str
    is_online: bool
    connection_ref: str | None
    login_time: datetime | None
    last_status_change: StatusChangeResponse | None
    created_at: datetime
    updated_at: datetime


class AgentListResponse(CamelModel):
    items: list[AgentResponse]
    total: int


class CreateAgentRequest(CamelModel):
    agent_code: str = Field(min_length=1, max_length=40, pattern=r"^[A-Za-z0-9_-]+$")
    name: str = Field(min_length=1, max_length=120)
    email: str | None = Field(default=None, max_length=254)
    department: str | None = Field(default=None, max_length=120)
    skills: list[str] = Field(default_factory=list)
    status: str | None = None


class UpdateAgentRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    email: str | None = Field(default=None, max_length=254)
    department: str | None = Field(default=None, max_length=120)
    skills: list[str] | None = None


class UpdateAgentStatusRequest(CamelModel):
    status: str = Field(min_length=1, max_length=40)
    reason: str | None = Field(default=None, max_length=255)


class AgentStatusChangedResponse(CamelModel):
    id: UUID
    agent_code: str
    status: str
    last_status_change: StatusChangeResponse | None
