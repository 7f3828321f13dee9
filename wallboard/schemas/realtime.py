from datetime import datetime
from uuid import UUID

from pydantic import Field

from wallboard.schemas.agent import AgentResponse, StatusChangeResponse
from wallboard.schemas.common import CamelModel


class AgentLoginCommand(CamelModel):
    agent_code: str = Field(min_length=1, max_length=40)
    agent_name: str = Field(default="", max_length=120)


class AgentPresencePayload(CamelModel):
    agent_code: str
    agent_name: str
    timestamp: datetime


class LoginSuccessPayload(CamelModel):
    agent: AgentResponse
    message: str


class MessagePayload(CamelModel):
    message: str


class SessionSupersededPayload(CamelModel):
    agent_code: str
    message: str


class AgentStatusChangedPayload(CamelModel):
    id: UUID
    agent_code: str
    status: str
    last_status_change: StatusChangeResponse | None


class ConnectionSessionResponse(CamelModel):
    connection_id: str
    agent_id: UUID
    agent_code: str
    agent_name: str
    login_time: datetime


class ConnectionListResponse(CamelModel):
    items: list[ConnectionSessionResponse]
    total: int
