import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from wallboard.domain.enums import AgentStatus
from wallboard.domain.exceptions import IllegalTransitionError, InvalidStatusError

DEFAULT_STATUS_TRANSITIONS: dict[str, tuple[str, ...]] = {
    AgentStatus.AVAILABLE.value: (
        AgentStatus.ACTIVE.value,
        AgentStatus.WRAP_UP.value,
        AgentStatus.NOT_READY.value,
    ),
    AgentStatus.ACTIVE.value: (AgentStatus.WRAP_UP.value,),
    AgentStatus.WRAP_UP.value: (
        AgentStatus.AVAILABLE.value,
        AgentStatus.NOT_READY.value,
    ),
    AgentStatus.NOT_READY.value: (
        AgentStatus.AVAILABLE.value,
        AgentStatus.OFFLINE.value,
    ),
    AgentStatus.OFFLINE.value: (AgentStatus.AVAILABLE.value,),
}


@dataclass(frozen=True, slots=True)
class StatusWorkflow:
    """Static agent status graph: each status maps to its allowed successors.

    Self-loops are only legal when a status lists itself. ``offline_status`` is
    the status forced on disconnect, ``initial_status`` the one given to newly
    created agents.
    """

    transitions: Mapping[str, frozenset[str]]
    statuses: tuple[str, ...]
    offline_status: str
    initial_status: str

    @classmethod
    def from_mapping(
        cls,
        transitions: Mapping[str, Iterable[str]],
        offline_status: str = AgentStatus.OFFLINE.value,
        initial_status: str | None = None,
    ) -> "StatusWorkflow":
        if not transitions:
            raise ValueError("Status workflow needs at least one status.")

        statuses = tuple(transitions)
        graph = {status: frozenset(successors) for status, successors in transitions.items()}

        for status, successors in graph.items():
            unknown = sorted(successors.difference(statuses))
            if unknown:
                raise ValueError(
                    f"Status '{status}' lists unknown successors: {', '.join(unknown)}"
                )

        initial = initial_status if initial_status is not None else offline_status
        for label, value in (("offline", offline_status), ("initial", initial)):
            if value not in graph:
                raise ValueError(f"The {label} status '{value}' is not a configured status.")

        return cls(
            transitions=graph,
            statuses=statuses,
            offline_status=offline_status,
            initial_status=initial,
        )

    @classmethod
    def from_json(
        cls,
        raw: str,
        offline_status: str = AgentStatus.OFFLINE.value,
        initial_status: str | None = None,
    ) -> "StatusWorkflow":
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError("Status transitions must be a JSON object.") from exc

        if not isinstance(parsed, dict) or not all(
            isinstance(successors, list) for successors in parsed.values()
        ):
            raise ValueError("Status transitions must map each status to a list.")

        return cls.from_mapping(
            parsed,
            offline_status=offline_status,
            initial_status=initial_status,
        )

    @classmethod
    def default(cls) -> "StatusWorkflow":
        return cls.from_mapping(DEFAULT_STATUS_TRANSITIONS)

    def is_known(self, status: str) -> bool:
        return status in self.transitions

    def ensure_known(self, status: str) -> str:
        if not self.is_known(status):
            raise InvalidStatusError(status, self.statuses)
        return status

    def allowed_next(self, current: str) -> tuple[str, ...]:
        successors = self.transitions.get(current, frozenset())
        # Keep configuration order so error messages are stable.
        return tuple(status for status in self.statuses if status in successors)

    def transition(self, current: str, target: str) -> str:
        self.ensure_known(target)
        if target not in self.transitions.get(current, frozenset()):
            raise IllegalTransitionError(current, target, self.allowed_next(current))
        return target
