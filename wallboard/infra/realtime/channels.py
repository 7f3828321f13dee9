DASHBOARD_CHANNEL = "dashboard"
# Every connected client, subscribed or not.
BROADCAST_CHANNEL = "*"


def agent_channel(agent_code: str) -> str:
    return f"agent:{agent_code}"
