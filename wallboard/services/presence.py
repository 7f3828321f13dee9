import logging
from uuid import UUID

from wallboard.core.locks import KeyedLocks
from wallboard.domain.exceptions import AgentStoreError
from wallboard.domain.models import Agent, ConnectionSession, StatusChange, utc_now
from wallboard.domain.state_machine import StatusWorkflow
from wallboard.infra.realtime.channels import (
    BROADCAST_CHANNEL,
    DASHBOARD_CHANNEL,
    agent_channel,
)
from wallboard.infra.realtime.events import RealtimeEvent
from wallboard.infra.realtime.publisher import NoopRealtimePublisher, RealtimePublisher
from wallboard.infra.store.base import AgentStore
from wallboard.schemas.realtime import (
    AgentPresencePayload,
    LoginSuccessPayload,
    MessagePayload,
    SessionSupersededPayload,
)
from wallboard.services.dashboard import DashboardAggregator
from wallboard.services.errors import AgentNotFoundError
from wallboard.services.notifications import safe_publish, safe_send
from wallboard.services.payloads import agent_response

logger = logging.getLogger(__name__)

LOGIN_SUCCESS_MESSAGE = "Successfully connected to Agent Wallboard System"
LOGIN_FAILED_MESSAGE = "Login failed"
SUPERSEDED_MESSAGE = "Signed in from another connection"


class PresenceRegistry:
    """Tracks which live connection each agent is signed in on.

    The registry only indexes connections to agents; the agent record itself
    lives in the store and carries ``is_online``/``connection_ref``. Every
    presence write for an agent happens under that agent's lock, and the
    registry entry is only created once the store write succeeded.

    A second login for the same agent silently supersedes the first: the old
    connection loses its entry without an ``agent-offline`` event, so its later
    disconnect is a no-op. With ``notify_superseded`` the old connection gets a
    ``session-superseded`` event.
    """

    def __init__(
        self,
        store: AgentStore,
        workflow: StatusWorkflow,
        locks: KeyedLocks,
        dashboard: DashboardAggregator,
        realtime: RealtimePublisher | None = None,
        notify_superseded: bool = False,
    ) -> None:
        self.store = store
        self.workflow = workflow
        self.locks = locks
        self.dashboard = dashboard
        self.realtime = realtime or NoopRealtimePublisher()
        self.notify_superseded = notify_superseded
        self._sessions: dict[str, ConnectionSession] = {}
        self._connections_by_agent: dict[UUID, str] = {}

    def session_for(self, connection_id: str) -> ConnectionSession | None:
        return self._sessions.get(connection_id)

    def connection_for(self, agent_id: UUID) -> str | None:
        return self._connections_by_agent.get(agent_id)

    def sessions(self) -> list[ConnectionSession]:
        return list(self._sessions.values())

    async def on_login(
        self,
        connection_id: str,
        agent_code: str,
        agent_name: str = "",
    ) -> Agent:
        try:
            agent = await self.store.get_by_code(agent_code)
            if agent is None:
                raise AgentNotFoundError(agent_code)

            current = self._sessions.get(connection_id)
            if current is not None and current.agent_id != agent.id:
                # Same socket switching agents: sign the previous agent out first.
                await self.on_disconnect_or_logout(connection_id, reason="logout")

            async with self.locks.hold(agent.id):
                now = utc_now()
                updated = await self.store.update(
                    agent.id,
                    {
                        "is_online": True,
                        "connection_ref": connection_id,
                        "login_time": now,
                        "updated_at": now,
                    },
                )
                if updated is None:
                    raise AgentNotFoundError(agent_code)

                session = ConnectionSession(
                    connection_id=connection_id,
                    agent_id=updated.id,
                    agent_code=updated.agent_code,
                    agent_name=agent_name.strip() or updated.name,
                    login_time=now,
                )
                superseded = self._bind(session)
        except AgentNotFoundError:
            logger.info("Login rejected for unknown agent %s", agent_code)
            await self._send_login_error(connection_id, f"Agent {agent_code} not found")
            raise
        except AgentStoreError:
            logger.exception("Login failed for agent %s", agent_code)
            await self._send_login_error(connection_id, LOGIN_FAILED_MESSAGE)
            raise

        channel = agent_channel(session.agent_code)
        if superseded is not None:
            logger.info(
                "Agent %s moved from connection %s to %s",
                session.agent_code,
                superseded,
                connection_id,
            )
            await self.realtime.unsubscribe(superseded, channel)
        await self.realtime.subscribe(connection_id, channel)

        await safe_send(
            self.realtime,
            connection_id,
            RealtimeEvent.LOGIN_SUCCESS,
            LoginSuccessPayload(agent=agent_response(updated), message=LOGIN_SUCCESS_MESSAGE),
        )
        await safe_publish(
            self.realtime,
            channels=[BROADCAST_CHANNEL],
            event=RealtimeEvent.AGENT_ONLINE,
            payload=AgentPresencePayload(
                agent_code=session.agent_code,
                agent_name=session.agent_name,
                timestamp=now,
            ),
            exclude=connection_id,
        )
        if superseded is not None and self.notify_superseded:
            # Last event the old connection receives for this agent.
            await safe_send(
                self.realtime,
                superseded,
                RealtimeEvent.SESSION_SUPERSEDED,
                SessionSupersededPayload(
                    agent_code=session.agent_code,
                    message=SUPERSEDED_MESSAGE,
                ),
            )
        logger.info("Agent %s logged in on connection %s", session.agent_code, connection_id)
        await self.dashboard.publish()
        return updated

    async def on_disconnect_or_logout(
        self,
        connection_id: str,
        reason: str = "disconnect",
    ) -> None:
        session = self._sessions.get(connection_id)
        if session is None:
            return

        async with self.locks.hold(session.agent_id):
            # A newer login may have superseded this connection while we waited.
            if self._sessions.get(connection_id) is not session:
                return

            now = utc_now()
            updated = await self.store.update(
                session.agent_id,
                {
                    "is_online": False,
                    "connection_ref": None,
                    "status": self.workflow.offline_status,
                    "last_status_change": StatusChange(timestamp=now, reason=reason),
                    "updated_at": now,
                },
            )
            self._unbind(session)

        await self.realtime.unsubscribe(connection_id, agent_channel(session.agent_code))
        if updated is None:
            logger.info("Agent %s vanished before going offline", session.agent_code)
            return

        await safe_publish(
            self.realtime,
            channels=[BROADCAST_CHANNEL],
            event=RealtimeEvent.AGENT_OFFLINE,
            payload=AgentPresencePayload(
                agent_code=session.agent_code,
                agent_name=session.agent_name,
                timestamp=now,
            ),
        )
        logger.info("Agent %s %s and marked offline", session.agent_code, reason)
        await self.dashboard.publish()

    async def on_join_dashboard(self, connection_id: str) -> None:
        await self.realtime.subscribe(connection_id, DASHBOARD_CHANNEL)
        logger.info("Connection %s joined the dashboard", connection_id)
        await self.dashboard.send_to(connection_id)

    async def forget_agent(self, agent_id: UUID) -> None:
        connection_id = self._connections_by_agent.get(agent_id)
        if connection_id is None:
            return
        session = self._sessions.get(connection_id)
        if session is None:
            self._connections_by_agent.pop(agent_id, None)
            return
        self._unbind(session)
        await self.realtime.unsubscribe(connection_id, agent_channel(session.agent_code))

    def _bind(self, session: ConnectionSession) -> str | None:
        prior = self._connections_by_agent.get(session.agent_id)
        superseded = prior if prior is not None and prior != session.connection_id else None
        if superseded is not None:
            self._sessions.pop(superseded, None)

        self._sessions[session.connection_id] = session
        self._connections_by_agent[session.agent_id] = session.connection_id
        return superseded

    def _unbind(self, session: ConnectionSession) -> None:
        self._sessions.pop(session.connection_id, None)
        if self._connections_by_agent.get(session.agent_id) == session.connection_id:
            self._connections_by_agent.pop(session.agent_id, None)

    async def _send_login_error(self, connection_id: str, message: str) -> None:
        await safe_send(
            self.realtime,
            connection_id,
            RealtimeEvent.LOGIN_ERROR,
            MessagePayload(message=message),
        )
