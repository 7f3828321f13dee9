import asyncio
import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel
from starlette.websockets import WebSocketDisconnect

from wallboard.core.locks import KeyedLocks
from wallboard.infra.realtime.channels import BROADCAST_CHANNEL
from wallboard.infra.realtime.connection import RealtimeConnection
from wallboard.infra.realtime.events import RealtimeEvent

logger = logging.getLogger(__name__)

DIRECT_CHANNEL = "direct"


class InMemoryRealtimeHub:
    """In-process channel hub for websocket fanout.

    Delivery is fire-and-forget and at-most-once: nothing is queued for
    connections that are not subscribed at publish time. Publishes on one
    channel are delivered in the order they were made; there is no ordering
    across channels. A connection whose send fails is dropped from the channel.
    """

    def __init__(self) -> None:
        self._connections: dict[str, RealtimeConnection] = {}
        self._channel_subscribers: dict[str, dict[str, RealtimeConnection]] = {}
        self._connection_channels: dict[str, set[str]] = {}
        self._lock = asyncio.Lock()
        self._delivery = KeyedLocks()

    async def connect(self, connection: RealtimeConnection) -> None:
        async with self._lock:
            self._connections[connection.connection_id] = connection
            self._connection_channels.setdefault(connection.connection_id, set())

    async def disconnect(self, connection_id: str) -> None:
        async with self._lock:
            self._forget(connection_id)

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def connection_ids(self) -> list[str]:
        return list(self._connections)

    def subscriber_count(self, channel: str) -> int:
        if channel == BROADCAST_CHANNEL:
            return len(self._connections)
        subscribers = self._channel_subscribers.get(channel)
        if subscribers is None:
            return 0
        return len(subscribers)

    def channels_for(self, connection_id: str) -> set[str]:
        return set(self._connection_channels.get(connection_id, set()))

    async def subscribe(self, connection_id: str, channel: str) -> None:
        if channel == BROADCAST_CHANNEL:
            return
        async with self._lock:
            connection = self._connections.get(connection_id)
            if connection is None:
                logger.debug("Ignoring subscribe to %s for closed connection %s", channel, connection_id)
                return
            self._channel_subscribers.setdefault(channel, {})[connection_id] = connection
            self._connection_channels.setdefault(connection_id, set()).add(channel)

    async def unsubscribe(self, connection_id: str, channel: str) -> None:
        async with self._lock:
            self._remove_subscription(connection_id, channel)

    async def publish(
        self,
        channels: Sequence[str],
        event: RealtimeEvent,
        payload: BaseModel,
        exclude: str | None = None,
    ) -> None:
        unique_channels = [channel for channel in dict.fromkeys(channels) if channel]
        if not unique_channels:
            return

        body = self._serialize(payload)
        for channel in unique_channels:
            async with self._delivery.hold(channel):
                async with self._lock:
                    recipients = self._recipients(channel)

                recipients = [
                    connection
                    for connection in recipients
                    if connection.connection_id != exclude
                ]
                if not recipients:
                    continue

                envelope = self._envelope(event, channel, body)
                stale = await self._deliver(recipients, envelope)
                if stale:
                    await self._drop_stale(stale, channel)

    async def send_to(
        self,
        connection_id: str,
        event: RealtimeEvent,
        payload: BaseModel,
    ) -> None:
        connection = self._connections.get(connection_id)
        if connection is None:
            return

        envelope = self._envelope(event, DIRECT_CHANNEL, self._serialize(payload))
        stale = await self._deliver([connection], envelope)
        if stale:
            await self.disconnect(connection_id)

    def _recipients(self, channel: str) -> list[RealtimeConnection]:
        if channel == BROADCAST_CHANNEL:
            return list(self._connections.values())
        return list(self._channel_subscribers.get(channel, {}).values())

    async def _deliver(
        self,
        recipients: Sequence[RealtimeConnection],
        envelope: Mapping[str, Any],
    ) -> list[str]:
        stale: list[str] = []
        for connection in recipients:
            try:
                await connection.send_json(envelope)
            except (RuntimeError, WebSocketDisconnect):
                logger.warning(
                    "Dropping connection %s after failed %s delivery",
                    connection.connection_id,
                    envelope["event"],
                )
                stale.append(connection.connection_id)
        return stale

    async def _drop_stale(self, connection_ids: Sequence[str], channel: str) -> None:
        async with self._lock:
            for connection_id in connection_ids:
                if channel == BROADCAST_CHANNEL:
                    self._forget(connection_id)
                else:
                    self._remove_subscription(connection_id, channel)

    def _forget(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)
        channels = self._connection_channels.pop(connection_id, set())
        for channel in channels:
            subscribers = self._channel_subscribers.get(channel)
            if subscribers is None:
                continue
            subscribers.pop(connection_id, None)
            if not subscribers:
                self._channel_subscribers.pop(channel, None)

    def _remove_subscription(self, connection_id: str, channel: str) -> None:
        subscribers = self._channel_subscribers.get(channel)
        if subscribers is not None:
            subscribers.pop(connection_id, None)
            if not subscribers:
                self._channel_subscribers.pop(channel, None)

        channels = self._connection_channels.get(connection_id)
        if channels is not None:
            channels.discard(channel)

    @staticmethod
    def _serialize(payload: BaseModel) -> dict[str, Any]:
        return payload.model_dump(mode="json", by_alias=True)

    @staticmethod
    def _envelope(event: RealtimeEvent, channel: str, body: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "event": event.value,
            "channel": channel,
            "payload": dict(body),
            "sent_at": datetime.now(UTC).isoformat(),
        }
