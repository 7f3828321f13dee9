import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from wallboard.domain.exceptions import AgentStoreError
from wallboard.domain.models import Agent
from wallboard.domain.state_machine import StatusWorkflow
from wallboard.infra.realtime.channels import DASHBOARD_CHANNEL
from wallboard.infra.realtime.events import RealtimeEvent
from wallboard.infra.realtime.publisher import NoopRealtimePublisher, RealtimePublisher
from wallboard.infra.store.base import AgentStore
from wallboard.schemas.dashboard import DashboardSnapshot
from wallboard.services.notifications import safe_publish, safe_send

logger = logging.getLogger(__name__)


def summarize(
    agents: Iterable[Agent],
    statuses: Sequence[str],
    timestamp: datetime | None = None,
) -> DashboardSnapshot:
    """Aggregate an agent population into dashboard counters.

    Every configured status appears in the counts, even with zero agents.
    Percentages are rounded per status, so they sum to roughly 100 when there
    is at least one agent and are all zero otherwise.
    """
    population = list(agents)
    total = len(population)
    counted = Counter(agent.status for agent in population)
    online = Counter(agent.status for agent in population if agent.is_online)

    ordered = list(statuses) + sorted(set(counted).difference(statuses))
    status_counts = {status: counted.get(status, 0) for status in ordered}
    status_percentages = {
        status: round(count / total * 100) if total > 0 else 0
        for status, count in status_counts.items()
    }
    online_agents = sum(online.values())

    return DashboardSnapshot(
        total_agents=total,
        online_agents=online_agents,
        offline_agents=total - online_agents,
        status_counts=status_counts,
        status_percentages=status_percentages,
        status_breakdown=dict(online),
        timestamp=timestamp or datetime.now(UTC),
    )


class DashboardAggregator:
    def __init__(
        self,
        store: AgentStore,
        workflow: StatusWorkflow,
        realtime: RealtimePublisher | None = None,
    ) -> None:
        self.store = store
        self.workflow = workflow
        self.realtime = realtime or NoopRealtimePublisher()

    async def snapshot(self) -> DashboardSnapshot:
        agents = await self.store.list()
        return summarize(agents, self.workflow.statuses)

    async def publish(self) -> DashboardSnapshot | None:
        snapshot = await self._snapshot_or_none()
        if snapshot is None:
            return None
        await safe_publish(
            self.realtime,
            channels=[DASHBOARD_CHANNEL],
            event=RealtimeEvent.DASHBOARD_UPDATE,
            payload=snapshot,
        )
        return snapshot

    async def send_to(self, connection_id: str) -> DashboardSnapshot | None:
        snapshot = await self._snapshot_or_none()
        if snapshot is None:
            return None
        await safe_send(
            self.realtime,
            connection_id,
            RealtimeEvent.DASHBOARD_UPDATE,
            snapshot,
        )
        return snapshot

    async def _snapshot_or_none(self) -> DashboardSnapshot | None:
        try:
            return await self.snapshot()
        except AgentStoreError:
            logger.exception("Skipping dashboard push, agent store unavailable")
            return None
