from collections.abc import Sequence
from typing import Protocol

from pydantic import BaseModel

from wallboard.infra.realtime.events import RealtimeEvent


class RealtimePublisher(Protocol):
    async def publish(
        self,
        channels: Sequence[str],
        event: RealtimeEvent,
        payload: BaseModel,
        exclude: str | None = None,
    ) -> None: ...

    async def send_to(
        self,
        connection_id: str,
        event: RealtimeEvent,
        payload: BaseModel,
    ) -> None: ...

    async def subscribe(self, connection_id: str, channel: str) -> None: ...

    async def unsubscribe(self, connection_id: str, channel: str) -> None: ...


class NoopRealtimePublisher:
    async def publish(
        self,
        channels: Sequence[str],
        event: RealtimeEvent,
        payload: BaseModel,
        exclude: str | None = None,
    ) -> None:
        _ = channels
        _ = event
        _ = payload
        _ = exclude
        return None

    async def send_to(
        self,
        connection_id: str,
        event: RealtimeEvent,
        payload: BaseModel,
    ) -> None:
        _ = connection_id
        _ = event
        _ = payload
        return None

    async def subscribe(self, connection_id: str, channel: str) -> None:
        _ = connection_id
        _ = channel
        return None

    async def unsubscribe(self, connection_id: str, channel: str) -> None:
        _ = connection_id
        _ = channel
        return None
