from dataclasses import dataclass

from wallboard.core.locks import KeyedLocks
from wallboard.domain.state_machine import StatusWorkflow
from wallboard.infra.realtime.hub import InMemoryRealtimeHub
from wallboard.infra.store.base import AgentStore
from wallboard.services.agent_service import AgentService
from wallboard.services.dashboard import DashboardAggregator
from wallboard.services.presence import PresenceRegistry
from wallboard.services.status_service import StatusTransitionEngine


@dataclass(slots=True)
class WallboardServices:
    store: AgentStore
    workflow: StatusWorkflow
    hub: InMemoryRealtimeHub
    locks: KeyedLocks
    dashboard: DashboardAggregator
    engine: StatusTransitionEngine
    presence: PresenceRegistry
    agents: AgentService


def build_services(
    store: AgentStore,
    workflow: StatusWorkflow,
    hub: InMemoryRealtimeHub | None = None,
    notify_superseded: bool = False,
) -> WallboardServices:
    hub = hub or InMemoryRealtimeHub()
    locks = KeyedLocks()
    dashboard = DashboardAggregator(store, workflow, realtime=hub)
    engine = StatusTransitionEngine(
        store,
        workflow,
        locks,
        realtime=hub,
        dashboard=dashboard,
    )
    presence = PresenceRegistry(
        store,
        workflow,
        locks,
        dashboard,
        realtime=hub,
        notify_superseded=notify_superseded,
    )
    agents = AgentService(store, workflow, engine, presence, dashboard)
    return WallboardServices(
        store=store,
        workflow=workflow,
        hub=hub,
        locks=locks,
        dashboard=dashboard,
        engine=engine,
        presence=presence,
        agents=agents,
    )
