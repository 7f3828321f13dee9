import logging
from uuid import UUID

from wallboard.domain.models import Agent, StatusChange, utc_now
from wallboard.domain.state_machine import StatusWorkflow
from wallboard.infra.store.base import AgentFilter, AgentStore
from wallboard.services.dashboard import DashboardAggregator
from wallboard.services.errors import AgentNotFoundError
from wallboard.services.presence import PresenceRegistry
from wallboard.services.status_service import StatusTransitionEngine

logger = logging.getLogger(__name__)


class AgentService:
    def __init__(
        self,
        store: AgentStore,
        workflow: StatusWorkflow,
        engine: StatusTransitionEngine,
        presence: PresenceRegistry,
        dashboard: DashboardAggregator,
    ) -> None:
        self.store = store
        self.workflow = workflow
        self.engine = engine
        self.presence = presence
        self.dashboard = dashboard

    async def create_agent(
        self,
        agent_code: str,
        name: str,
        email: str | None = None,
        department: str | None = None,
        skills: list[str] | None = None,
        status: str | None = None,
    ) -> Agent:
        initial_status = self.workflow.ensure_known(status or self.workflow.initial_status)
        now = utc_now()
        agent = Agent(
            agent_code=agent_code.strip(),
            name=name.strip(),
            email=email,
            department=department,
            skills=list(skills or []),
            status=initial_status,
            last_status_change=StatusChange(timestamp=now, reason="created"),
            created_at=now,
            updated_at=now,
        )
        created = await self.store.create(agent)
        logger.info("Created agent %s", created.agent_code)
        await self.dashboard.publish()
        return created

    async def get_agent(self, agent_id: UUID) -> Agent:
        agent = await self.store.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    async def list_agents(
        self,
        status: str | None = None,
        department: str | None = None,
    ) -> list[Agent]:
        return await self.store.list(AgentFilter(status=status, department=department))

    async def update_agent(
        self,
        agent_id: UUID,
        name: str | None = None,
        email: str | None = None,
        department: str | None = None,
        skills: list[str] | None = None,
    ) -> Agent:
        changes: dict[str, object] = {}
        if name:
            changes["name"] = name.strip()
        if email:
            changes["email"] = email
        if department:
            changes["department"] = department
        if skills is not None:
            changes["skills"] = list(skills)

        if not changes:
            return await self.get_agent(agent_id)

        changes["updated_at"] = utc_now()
        async with self.engine.locks.hold(agent_id):
            updated = await self.store.update(agent_id, changes)
        if updated is None:
            raise AgentNotFoundError(agent_id)
        logger.info("Updated agent %s", updated.agent_code)
        return updated

    async def update_status(
        self,
        agent_id: UUID,
        status: str,
        reason: str | None = None,
    ) -> Agent:
        return await self.engine.transition(agent_id, status, reason)

    async def delete_agent(self, agent_id: UUID) -> Agent:
        async with self.engine.locks.hold(agent_id):
            agent = await self.store.get(agent_id)
            if agent is None or not await self.store.delete(agent_id):
                raise AgentNotFoundError(agent_id)
            await self.presence.forget_agent(agent_id)

        logger.info("Deleted agent %s - %s", agent.agent_code, agent.name)
        await self.dashboard.publish()
        return agent
