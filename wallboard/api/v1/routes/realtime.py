import json
import logging
from uuid import uuid4

import anyio
from fastapi import APIRouter, Depends, WebSocket
from pydantic import ValidationError
from starlette.websockets import WebSocketDisconnect

from wallboard.api.deps import get_services
from wallboard.domain.exceptions import AgentStoreError
from wallboard.infra.realtime.connection import WebSocketConnection
from wallboard.infra.realtime.events import ClientAction, RealtimeEvent
from wallboard.schemas.realtime import (
    AgentLoginCommand,
    ConnectionListResponse,
    ConnectionSessionResponse,
    MessagePayload,
)
from wallboard.services.container import WallboardServices
from wallboard.services.errors import AgentNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/connections", response_model=ConnectionListResponse)
async def list_connections(
    services: WallboardServices = Depends(get_services),
) -> ConnectionListResponse:
    items = [
        ConnectionSessionResponse.model_validate(session)
        for session in services.presence.sessions()
    ]
    return ConnectionListResponse(items=items, total=len(items))


@router.websocket("/ws")
async def realtime_ws(websocket: WebSocket) -> None:
    services: WallboardServices | None = getattr(websocket.app.state, "services", None)
    if services is None:
        await websocket.close(code=1011, reason="Realtime hub not initialized")
        return

    hub = services.hub
    presence = services.presence
    connection_id = uuid4().hex

    await websocket.accept()
    await hub.connect(WebSocketConnection(connection_id, websocket))
    logger.info("Client connected: %s", connection_id)

    try:
        while True:
            raw_message = await websocket.receive_text()
            if raw_message.strip().lower() == "ping":
                await hub.send_to(connection_id, RealtimeEvent.PONG, MessagePayload(message="pong"))
                continue

            try:
                message = json.loads(raw_message)
            except json.JSONDecodeError:
                await _send_error(services, connection_id, "Expected JSON payload")
                continue
            if not isinstance(message, dict):
                await _send_error(services, connection_id, "Expected JSON object")
                continue

            action = message.get("action")
            if action == ClientAction.PING.value:
                await hub.send_to(connection_id, RealtimeEvent.PONG, MessagePayload(message="pong"))
                continue

            if action == ClientAction.AGENT_LOGIN.value:
                try:
                    command = AgentLoginCommand.model_validate(message)
                except ValidationError:
                    await hub.send_to(
                        connection_id,
                        RealtimeEvent.LOGIN_ERROR,
                        MessagePayload(message="agentCode is required"),
                    )
                    continue
                try:
                    await presence.on_login(
                        connection_id, command.agent_code, command.agent_name
                    )
                except (AgentNotFoundError, AgentStoreError) as exc:
                    # Already reported to this connection as login-error.
                    logger.debug("Login on %s failed: %s", connection_id, exc)
                continue

            if action == ClientAction.AGENT_LOGOUT.value:
                try:
                    await presence.on_disconnect_or_logout(connection_id, reason="logout")
                except AgentStoreError:
                    logger.exception("Agent logout failed on connection %s", connection_id)
                    await _send_error(services, connection_id, "Logout failed")
                continue

            if action == ClientAction.JOIN_DASHBOARD.value:
                await presence.on_join_dashboard(connection_id)
                continue

            await _send_error(services, connection_id, "Unsupported action")
    except WebSocketDisconnect:
        logger.info("Client disconnected: %s", connection_id)
    finally:
        # Cleanup must finish even when the handler task is being cancelled.
        with anyio.CancelScope(shield=True):
            try:
                await presence.on_disconnect_or_logout(connection_id, reason="disconnect")
            except AgentStoreError:
                logger.exception("Error handling agent disconnect for %s", connection_id)
            await hub.disconnect(connection_id)


async def _send_error(services: WallboardServices, connection_id: str, detail: str) -> None:
    await services.hub.send_to(connection_id, RealtimeEvent.ERROR, MessagePayload(message=detail))
