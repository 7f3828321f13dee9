from enum import Enum


class RealtimeEvent(str, Enum):
    AGENT_ONLINE = "agent-online"
    AGENT_OFFLINE = "agent-offline"
    LOGIN_SUCCESS = "login-success"
    LOGIN_ERROR = "login-error"
    SESSION_SUPERSEDED = "session-superseded"
    AGENT_STATUS_CHANGED = "agentStatusChanged"
    DASHBOARD_UPDATE = "dashboardUpdate"
    PONG = "pong"
    ERROR = "error"


class ClientAction(str, Enum):
    AGENT_LOGIN = "agent-login"
    AGENT_LOGOUT = "agent-logout"
    JOIN_DASHBOARD = "join-dashboard"
    PING = "ping"
