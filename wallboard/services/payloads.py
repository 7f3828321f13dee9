from wallboard.domain.models import Agent
from wallboard.schemas.agent import AgentResponse
from wallboard.schemas.realtime import AgentStatusChangedPayload


def agent_response(agent: Agent) -> AgentResponse:
    return AgentResponse.model_validate(agent)


def status_changed_payload(agent: Agent) -> AgentStatusChangedPayload:
    return AgentStatusChangedPayload.model_validate(agent)
