from uuid import UUID


class AgentNotFoundError(LookupError):
    def __init__(self, agent_ref: UUID | str) -> None:
        super().__init__(f"Agent '{agent_ref}' not found")
        self.agent_ref = agent_ref
