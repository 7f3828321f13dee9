import logging
from uuid import UUID

from wallboard.core.locks import KeyedLocks
from wallboard.domain.models import Agent, StatusChange, utc_now
from wallboard.domain.state_machine import StatusWorkflow
from wallboard.infra.realtime.channels import DASHBOARD_CHANNEL, agent_channel
from wallboard.infra.realtime.events import RealtimeEvent
from wallboard.infra.realtime.publisher import NoopRealtimePublisher, RealtimePublisher
from wallboard.infra.store.base import AgentStore
from wallboard.services.dashboard import DashboardAggregator
from wallboard.services.errors import AgentNotFoundError
from wallboard.services.notifications import safe_publish
from wallboard.services.payloads import status_changed_payload

logger = logging.getLogger(__name__)


class StatusTransitionEngine:
    """Applies status changes that are edges of the configured workflow."""

    def __init__(
        self,
        store: AgentStore,
        workflow: StatusWorkflow,
        locks: KeyedLocks,
        realtime: RealtimePublisher | None = None,
        dashboard: DashboardAggregator | None = None,
    ) -> None:
        self.store = store
        self.workflow = workflow
        self.locks = locks
        self.realtime = realtime or NoopRealtimePublisher()
        self.dashboard = dashboard

    async def transition(
        self,
        agent_id: UUID,
        target_status: str,
        reason: str | None = None,
    ) -> Agent:
        async with self.locks.hold(agent_id):
            agent = await self.store.get(agent_id)
            if agent is None:
                raise AgentNotFoundError(agent_id)

            self.workflow.transition(agent.status, target_status)

            now = utc_now()
            updated = await self.store.update(
                agent_id,
                {
                    "status": target_status,
                    "last_status_change": StatusChange(timestamp=now, reason=reason),
                    "updated_at": now,
                },
            )
            if updated is None:
                raise AgentNotFoundError(agent_id)

        logger.info(
            "Status updated: %s %s -> %s", updated.agent_code, agent.status, updated.status
        )
        await self._emit_status_changed(updated)
        return updated

    async def _emit_status_changed(self, agent: Agent) -> None:
        await safe_publish(
            self.realtime,
            channels=[agent_channel(agent.agent_code), DASHBOARD_CHANNEL],
            event=RealtimeEvent.AGENT_STATUS_CHANGED,
            payload=status_changed_payload(agent),
        )
        if self.dashboard is not None:
            await self.dashboard.publish()
