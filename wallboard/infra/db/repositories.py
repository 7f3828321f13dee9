from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wallboard.infra.db.models import AgentRow


class AgentRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, agent_id: UUID) -> AgentRow | None:
        return await self.session.get(AgentRow, agent_id)

    async def get_by_code(self, agent_code: str) -> AgentRow | None:
        stmt: Select[tuple[AgentRow]] = (
            select(AgentRow).where(AgentRow.agent_code == agent_code).limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list(
        self,
        status: str | None = None,
        department: str | None = None,
        is_online: bool | None = None,
    ) -> list[AgentRow]:
        stmt: Select[tuple[AgentRow]] = select(AgentRow)
        if status is not None:
            stmt = stmt.where(AgentRow.status == status)
        if department is not None:
            stmt = stmt.where(AgentRow.department == department)
        if is_online is not None:
            stmt = stmt.where(AgentRow.is_online.is_(is_online))
        stmt = stmt.order_by(AgentRow.created_at.asc(), AgentRow.agent_code.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def add(self, row: AgentRow) -> AgentRow:
        self.session.add(row)
        await self.session.flush()
        return row

    async def apply(self, row: AgentRow, changes: Mapping[str, Any]) -> AgentRow:
        for column, value in changes.items():
            setattr(row, column, value)
        await self.session.flush()
        return row

    async def delete(self, row: AgentRow) -> None:
        await self.session.delete(row)
        await self.session.flush()

    async def set_all_offline(self, offline_status: str, reason: str = "restart") -> None:
        now = datetime.now(UTC)
        await self.session.execute(
            update(AgentRow)
            .where(AgentRow.is_online.is_(True))
            .values(
                is_online=False,
                connection_ref=None,
                status=offline_status,
                last_status_change_at=now,
                last_status_change_reason=reason,
                updated_at=now,
            )
        )
