from collections.abc import Mapping
from typing import Any, Protocol

from fastapi import WebSocket


class RealtimeConnection(Protocol):
    connection_id: str

    async def send_json(self, data: Mapping[str, Any]) -> None: ...


class WebSocketConnection:
    def __init__(self, connection_id: str, websocket: WebSocket) -> None:
        self.connection_id = connection_id
        self.websocket = websocket

    async def send_json(self, data: Mapping[str, Any]) -> None:
        await self.websocket.send_json(dict(data))
