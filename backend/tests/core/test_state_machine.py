"""
状态机引擎单元测试
"""
import pytest

from core.engine.state_machine import (
    InvalidTransition, StateMachine, StateMachineConfig, StateTransition, triggers_between,
)


@pytest.fixture
def door_config():
    return StateMachineConfig(
        name="Door",
        states=["closed", "open", "locked"],
        initial_state="closed",
        final_states=[],
        transitions=[
            StateTransition("closed", "open", "open"),
            StateTransition("open", "closed", "close"),
            StateTransition("closed", "locked", "lock", condition=lambda ctx: ctx.get("has_key", False)),
            StateTransition("locked", "closed", "unlock"),
        ],
    )


class TestStateMachine:

    def test_starts_in_initial_state(self, door_config):
        assert StateMachine(door_config).current_state == "closed"

    def test_starts_in_given_state(self, door_config):
        assert StateMachine(door_config, state="open").current_state == "open"

    def test_unknown_state_rejected(self, door_config):
        with pytest.raises(ValueError):
            StateMachine(door_config, state="ajar")

    def test_fire_moves_to_target(self, door_config):
        machine = StateMachine(door_config)
        assert machine.fire("open") == "open"
        assert machine.current_state == "open"
        history = machine.get_history()
        assert len(history) == 1
        assert history[0].previous_state == "closed"
        assert history[0].current_state == "open"

    def test_fire_unknown_trigger_raises(self, door_config):
        machine = StateMachine(door_config)
        with pytest.raises(InvalidTransition) as exc:
            machine.fire("close")
        assert exc.value.state == "closed"
        assert exc.value.trigger == "close"
        assert machine.current_state == "closed"

    def test_condition_blocks_transition(self, door_config):
        machine = StateMachine(door_config)
        assert not machine.can_transition_to("locked", "lock")
        with pytest.raises(InvalidTransition):
            machine.fire("lock")
        assert machine.fire("lock", {"has_key": True}) == "locked"

    def test_condition_error_is_treated_as_denied(self):
        def broken(ctx):
            raise RuntimeError("boom")

        config = StateMachineConfig(
            name="X", states=["a", "b"], initial_state="a",
            transitions=[StateTransition("a", "b", "go", condition=broken)],
        )
        assert StateMachine(config).transition_to("b", "go") is False

    def test_transition_to_requires_matching_target(self, door_config):
        machine = StateMachine(door_config)
        assert machine.transition_to("locked", "open") is False
        assert machine.transition_to("open", "open") is True

    def test_available_triggers(self, door_config):
        machine = StateMachine(door_config)
        assert machine.available_triggers() == ["open"]
        assert sorted(machine.available_triggers({"has_key": True})) == ["lock", "open"]

    def test_reset(self, door_config):
        machine = StateMachine(door_config)
        machine.fire("open")
        machine.reset()
        assert machine.current_state == "closed"
        assert machine.get_history() == []

    def test_config_rejects_unknown_states(self):
        with pytest.raises(ValueError):
            StateMachineConfig(
                name="Bad", states=["a"], initial_state="a",
                transitions=[StateTransition("a", "z", "go")],
            )

    def test_triggers_between(self, door_config):
        assert triggers_between(door_config, "closed", "open") == ["open"]
        assert triggers_between(door_config, "closed", "locked", allowed=["open"]) == []
        assert triggers_between(door_config, "open", "locked") == []
