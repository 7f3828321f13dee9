import logging

from wallboard.domain.exceptions import DuplicateAgentCodeError
from wallboard.domain.models import Agent, StatusChange, utc_now
from wallboard.domain.state_machine import StatusWorkflow
from wallboard.infra.store.base import AgentStore

logger = logging.getLogger(__name__)

DEFAULT_AGENTS: list[dict[str, str | list[str]]] = [
    {
        "agent_code": "A001",
        "name": "Somchai Jaidee",
        "email": "somchai@wallboard.local",
        "department": "Sales",
        "skills": ["Thai", "English", "Sales"],
    },
    {
        "agent_code": "A002",
        "name": "Malee Sukjai",
        "email": "malee@wallboard.local",
        "department": "Support",
        "skills": ["Thai", "Technical Support"],
    },
    {
        "agent_code": "A003",
        "name": "John Carter",
        "email": "john@wallboard.local",
        "department": "Support",
        "skills": ["English", "Billing"],
    },
]


async def seed_default_agents(store: AgentStore, workflow: StatusWorkflow) -> int:
    created = 0
    for entry in DEFAULT_AGENTS:
        now = utc_now()
        agent = Agent(
            agent_code=str(entry["agent_code"]),
            name=str(entry["name"]),
            email=str(entry["email"]),
            department=str(entry["department"]),
            skills=list(entry["skills"]),
            status=workflow.initial_status,
            last_status_change=StatusChange(timestamp=now, reason="seeded"),
            created_at=now,
            updated_at=now,
        )
        try:
            await store.create(agent)
        except DuplicateAgentCodeError:
            continue
        created += 1

    logger.info("Seeded %d default agents", created)
    return created
