from enum import Enum


class AgentStatus(str, Enum):
    AVAILABLE = "Available"
    ACTIVE = "Active"
    WRAP_UP = "Wrap Up"
    NOT_READY = "Not Ready"
    OFFLINE = "Offline"


class StoreBackend(str, Enum):
    MEMORY = "memory"
    DATABASE = "database"
