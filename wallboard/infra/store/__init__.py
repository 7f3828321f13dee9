"""Agent record persistence backends."""

from wallboard.infra.store.base import AgentFilter, AgentStore
from wallboard.infra.store.memory import InMemoryAgentStore
from wallboard.infra.store.sql import SqlAgentStore

__all__ = ["AgentFilter", "AgentStore", "InMemoryAgentStore", "SqlAgentStore"]
