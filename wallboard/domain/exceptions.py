from collections.abc import Iterable


class InvalidStatusError(ValueError):
    def __init__(self, status: str, known_statuses: Iterable[str]) -> None:
        self.status = status
        self.known_statuses = tuple(known_statuses)
        super().__init__(
            f"Invalid status: '{status}'. Known statuses: {', '.join(self.known_statuses)}"
        )


class IllegalTransitionError(ValueError):
    def __init__(self, current: str, target: str, valid_next: Iterable[str]) -> None:
        self.current = current
        self.target = target
        self.valid_next = tuple(valid_next)
        allowed = ", ".join(self.valid_next) or "none"
        super().__init__(
            f"Cannot change from '{current}' to '{target}'. Valid transitions: {allowed}"
        )


class DuplicateAgentCodeError(ValueError):
    def __init__(self, agent_code: str) -> None:
        super().__init__(f"Agent code '{agent_code}' already exists")
        self.agent_code = agent_code


class AgentStoreError(RuntimeError):
    """The backing store failed; the attempted mutation was not applied."""
