import logging
from collections.abc import Sequence

from pydantic import BaseModel

from wallboard.infra.realtime.events import RealtimeEvent
from wallboard.infra.realtime.publisher import RealtimePublisher

logger = logging.getLogger(__name__)


async def safe_publish(
    realtime: RealtimePublisher,
    channels: Sequence[str],
    event: RealtimeEvent,
    payload: BaseModel,
    exclude: str | None = None,
) -> None:
    # Notifications are fire-and-forget; a failed fanout never undoes a write.
    try:
        await realtime.publish(channels, event, payload, exclude=exclude)
    except Exception:
        logger.exception("Failed to publish %s to %s", event.value, list(channels))


async def safe_send(
    realtime: RealtimePublisher,
    connection_id: str,
    event: RealtimeEvent,
    payload: BaseModel,
) -> None:
    try:
        await realtime.send_to(connection_id, event, payload)
    except Exception:
        logger.exception("Failed to send %s to connection %s", event.value, connection_id)
