from datetime import datetime

from wallboard.schemas.common import CamelModel


class DashboardSnapshot(CamelModel):
    total_agents: int
    online_agents: int
    offline_agents: int
    status_counts: dict[str, int]
    status_percentages: dict[str, int]
    # Online agents only, per status.
    status_breakdown: dict[str, int]
    timestamp: datetime
