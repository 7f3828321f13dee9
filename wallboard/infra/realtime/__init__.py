"""Realtime event transport (WebSocket) adapters."""

from wallboard.infra.realtime.hub import InMemoryRealtimeHub

__all__ = ["InMemoryRealtimeHub"]
