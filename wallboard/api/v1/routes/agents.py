from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from wallboard.api.deps import get_services
from wallboard.domain.exceptions import (
    AgentStoreError,
    DuplicateAgentCodeError,
    IllegalTransitionError,
    InvalidStatusError,
)
from wallboard.domain.models import utc_now
from wallboard.schemas.agent import (
    AgentListResponse,
    AgentResponse,
    AgentStatusChangedResponse,
    CreateAgentRequest,
    UpdateAgentRequest,
    UpdateAgentStatusRequest,
)
from wallboard.schemas.common import ApiMessage
from wallboard.services.agent_service import AgentService
from wallboard.services.container import WallboardServices
from wallboard.services.errors import AgentNotFoundError
from wallboard.services.payloads import agent_response

router = APIRouter()


def get_agent_service(
    services: WallboardServices = Depends(get_services),
) -> AgentService:
    return services.agents


def _raise_for_service_error(exc: Exception) -> None:
    if isinstance(exc, AgentNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, DuplicateAgentCodeError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, IllegalTransitionError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(exc), "validTransitions": list(exc.valid_next)},
        ) from exc
    if isinstance(exc, InvalidStatusError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(exc), "validStatuses": list(exc.known_statuses)},
        ) from exc
    if isinstance(exc, AgentStoreError):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    raise exc


@router.get("", response_model=AgentListResponse)
async def list_agents(
    status_filter: str | None = Query(default=None, alias="status"),
    department: str | None = Query(default=None),
    service: AgentService = Depends(get_agent_service),
) -> AgentListResponse:
    try:
        agents = await service.list_agents(status=status_filter, department=department)
    except AgentStoreError as exc:
        _raise_for_service_error(exc)
    items = [agent_response(agent) for agent in agents]
    return AgentListResponse(items=items, total=len(items))


@router.get("/{agent_id}", response_model=AgentResponse)
async def get_agent(
    agent_id: UUID,
    service: AgentService = Depends(get_agent_service),
) -> AgentResponse:
    try:
        agent = await service.get_agent(agent_id)
    except (AgentNotFoundError, AgentStoreError) as exc:
        _raise_for_service_error(exc)
    return agent_response(agent)


@router.post("", response_model=AgentResponse, status_code=status.HTTP_201_CREATED)
async def create_agent(
    payload: CreateAgentRequest,
    service: AgentService = Depends(get_agent_service),
) -> AgentResponse:
    try:
        agent = await service.create_agent(
            agent_code=payload.agent_code,
            name=payload.name,
            email=payload.email,
            department=payload.department,
            skills=payload.skills,
            status=payload.status,
        )
    except (DuplicateAgentCodeError, InvalidStatusError, AgentStoreError) as exc:
        _raise_for_service_error(exc)
    return agent_response(agent)


@router.put("/{agent_id}", response_model=AgentResponse)
async def update_agent(
    agent_id: UUID,
    payload: UpdateAgentRequest,
    service: AgentService = Depends(get_agent_service),
) -> AgentResponse:
    try:
        agent = await service.update_agent(
            agent_id,
            name=payload.name,
            email=payload.email,
            department=payload.department,
            skills=payload.skills,
        )
    except (AgentNotFoundError, AgentStoreError, ValueError) as exc:
        _raise_for_service_error(exc)
    return agent_response(agent)


@router.patch("/{agent_id}/status", response_model=AgentStatusChangedResponse)
async def update_agent_status(
    agent_id: UUID,
    payload: UpdateAgentStatusRequest,
    service: AgentService = Depends(get_agent_service),
) -> AgentStatusChangedResponse:
    try:
        agent = await service.update_status(agent_id, payload.status, payload.reason)
    except (
        AgentNotFoundError,
        InvalidStatusError,
        IllegalTransitionError,
        AgentStoreError,
    ) as exc:
        _raise_for_service_error(exc)
    return AgentStatusChangedResponse.model_validate(agent)


@router.delete("/{agent_id}", response_model=ApiMessage)
async def delete_agent(
    agent_id: UUID,
    service: AgentService = Depends(get_agent_service),
) -> ApiMessage:
    try:
        agent = await service.delete_agent(agent_id)
    except (AgentNotFoundError, AgentStoreError) as exc:
        _raise_for_service_error(exc)
    return ApiMessage(detail=f"Agent {agent.agent_code} deleted", timestamp=utc_now())
