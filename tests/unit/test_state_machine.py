import pytest

from wallboard.domain.enums import AgentStatus
from wallboard.domain.exceptions import IllegalTransitionError, InvalidStatusError
from wallboard.domain.state_machine import StatusWorkflow


def test_offline_to_available_transition() -> None:
    workflow = StatusWorkflow.default()

    assert workflow.transition("Offline", "Available") == "Available"


def test_available_cannot_jump_to_offline() -> None:
    workflow = StatusWorkflow.default()

    with pytest.raises(IllegalTransitionError) as exc_info:
        workflow.transition("Available", "Offline")

    assert exc_info.value.current == "Available"
    assert exc_info.value.valid_next == ("Active", "Wrap Up", "Not Ready")


def test_unknown_target_status_is_invalid() -> None:
    workflow = StatusWorkflow.default()

    with pytest.raises(InvalidStatusError) as exc_info:
        workflow.transition("Available", "Lunch")

    assert "Offline" in exc_info.value.known_statuses


def test_self_loop_requires_explicit_edge() -> None:
    workflow = StatusWorkflow.default()
    with pytest.raises(IllegalTransitionError):
        workflow.transition("Available", "Available")

    looping = StatusWorkflow.from_mapping({"Offline": ["Offline", "On"], "On": ["Offline"]})
    assert looping.transition("Offline", "Offline") == "Offline"


def test_default_graph_lists_every_status() -> None:
    workflow = StatusWorkflow.default()

    assert workflow.statuses == tuple(status.value for status in AgentStatus)
    assert workflow.offline_status == "Offline"
    assert workflow.initial_status == "Offline"


def test_custom_graph_from_json() -> None:
    workflow = StatusWorkflow.from_json(
        '{"Idle": ["Ringing"], "Ringing": ["Talking", "Idle"], "Talking": ["Idle"], "Gone": ["Idle"]}',
        offline_status="Gone",
        initial_status="Idle",
    )

    assert workflow.statuses == ("Idle", "Ringing", "Talking", "Gone")
    assert workflow.allowed_next("Ringing") == ("Idle", "Talking")
    assert workflow.transition("Ringing", "Talking") == "Talking"
    with pytest.raises(IllegalTransitionError):
        workflow.transition("Idle", "Talking")


def test_allowed_next_follows_configuration_order() -> None:
    workflow = StatusWorkflow.from_mapping(
        {"A": ["C", "B"], "B": [], "C": ["A"]},
        offline_status="B",
    )

    assert workflow.allowed_next("A") == ("B", "C")
    assert workflow.allowed_next("B") == ()


@pytest.mark.parametrize(
    ("mapping", "offline_status"),
    [
        ({}, "Offline"),
        ({"Offline": ["Missing"]}, "Offline"),
        ({"Available": ["Available"]}, "Offline"),
    ],
)
def test_invalid_graph_configuration_rejected(mapping, offline_status) -> None:
    with pytest.raises(ValueError):
        StatusWorkflow.from_mapping(mapping, offline_status=offline_status)


def test_json_graph_must_be_object_of_lists() -> None:
    with pytest.raises(ValueError):
        StatusWorkflow.from_json('["Offline"]')
    with pytest.raises(ValueError):
        StatusWorkflow.from_json('{"Offline": "Available"}')
    with pytest.raises(ValueError):
        StatusWorkflow.from_json("not json")
