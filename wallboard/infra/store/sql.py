import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wallboard.domain.exceptions import AgentStoreError, DuplicateAgentCodeError
from wallboard.domain.models import Agent, StatusChange
from wallboard.infra.db.models import AgentRow
from wallboard.infra.db.repositories import AgentRepository
from wallboard.infra.store.base import AgentFilter, check_changes

logger = logging.getLogger(__name__)


def _to_agent(row: AgentRow) -> Agent:
    last_change = None
    if row.last_status_change_at is not None:
        last_change = StatusChange(
            timestamp=row.last_status_change_at,
            reason=row.last_status_change_reason,
        )
    return Agent(
        id=row.id,
        agent_code=row.agent_code,
        name=row.name,
        email=row.email,
        department=row.department,
        skills=list(row.skills or []),
        status=row.status,
        is_online=row.is_online,
        connection_ref=row.connection_ref,
        login_time=row.login_time,
        last_status_change=last_change,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_columns(changes: Mapping[str, Any]) -> dict[str, Any]:
    columns = dict(changes)
    if "last_status_change" in columns:
        last_change: StatusChange | None = columns.pop("last_status_change")
        columns["last_status_change_at"] = last_change.timestamp if last_change else None
        columns["last_status_change_reason"] = last_change.reason if last_change else None
    if "skills" in columns:
        columns["skills"] = list(columns["skills"] or [])
    return columns


class SqlAgentStore:
    """Agent store backed by the ``agents`` table; one transaction per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get(self, agent_id: UUID) -> Agent | None:
        try:
            async with self.session_factory() as session:
                row = await AgentRepository(session).get_by_id(agent_id)
                return _to_agent(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise AgentStoreError(f"Failed to load agent '{agent_id}'") from exc

    async def get_by_code(self, agent_code: str) -> Agent | None:
        try:
            async with self.session_factory() as session:
                row = await AgentRepository(session).get_by_code(agent_code)
                return _to_agent(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise AgentStoreError(f"Failed to load agent '{agent_code}'") from exc

    async def list(self, filters: AgentFilter | None = None) -> list[Agent]:
        filters = filters or AgentFilter()
        try:
            async with self.session_factory() as session:
                rows = await AgentRepository(session).list(
                    status=filters.status,
                    department=filters.department,
                    is_online=filters.is_online,
                )
                return [_to_agent(row) for row in rows]
        except SQLAlchemyError as exc:
            raise AgentStoreError("Failed to list agents") from exc

    async def create(self, agent: Agent) -> Agent:
        row = AgentRow(
            id=agent.id,
            agent_code=agent.agent_code,
            created_at=agent.created_at,
            updated_at=agent.updated_at,
            **_to_columns(
                {
                    "name": agent.name,
                    "email": agent.email,
                    "department": agent.department,
                    "skills": agent.skills,
                    "status": agent.status,
                    "is_online": agent.is_online,
                    "connection_ref": agent.connection_ref,
                    "login_time": agent.login_time,
                    "last_status_change": agent.last_status_change,
                }
            ),
        )
        try:
            async with self.session_factory() as session:
                repository = AgentRepository(session)
                if await repository.get_by_code(agent.agent_code) is not None:
                    raise DuplicateAgentCodeError(agent.agent_code)
                await repository.add(row)
                await session.commit()
                await session.refresh(row)
                return _to_agent(row)
        except IntegrityError as exc:
            # Lost a race against a concurrent insert of the same code.
            raise DuplicateAgentCodeError(agent.agent_code) from exc
        except SQLAlchemyError as exc:
            raise AgentStoreError(f"Failed to create agent '{agent.agent_code}'") from exc

    async def update(self, agent_id: UUID, changes: Mapping[str, Any]) -> Agent | None:
        check_changes(changes)
        try:
            async with self.session_factory() as session:
                repository = AgentRepository(session)
                row = await repository.get_by_id(agent_id)
                if row is None:
                    return None
                await repository.apply(row, _to_columns(changes))
                await session.commit()
                await session.refresh(row)
                return _to_agent(row)
        except SQLAlchemyError as exc:
            raise AgentStoreError(f"Failed to update agent '{agent_id}'") from exc

    async def delete(self, agent_id: UUID) -> bool:
        try:
            async with self.session_factory() as session:
                repository = AgentRepository(session)
                row = await repository.get_by_id(agent_id)
                if row is None:
                    return False
                await repository.delete(row)
                await session.commit()
                return True
        except SQLAlchemyError as exc:
            raise AgentStoreError(f"Failed to delete agent '{agent_id}'") from exc

    async def mark_all_offline(self, offline_status: str) -> None:
        try:
            async with self.session_factory() as session:
                await AgentRepository(session).set_all_offline(offline_status)
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to reset agent presence")
            raise AgentStoreError("Failed to reset agent presence") from exc
