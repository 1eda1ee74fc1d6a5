"""Tests for Engine.dispatch: lookup, hook order, commit rules and faults."""
import pytest

from tablefsm import (
    Action,
    ConfigError,
    ConfigIntegrityError,
    Engine,
    EngineConfig,
    MissingActionError,
    TransitionResult,
    config_from_mapping,
)

ROBOT = {
    "START": {"MOVE": "stay:START", "MOVELEFT": "left:INTERMEDIATE"},
    "INTERMEDIATE": {"MOVERIGHT": "right:ANKIT"},
    "ANKIT": {},
}


class Recorder(Action):
    """Action hook that logs every call into a shared list."""

    def __init__(self, log, name="hook", result=True):
        self.log = log
        self.name = name
        self.result = result

    def entry(self, cur, msg, nxt, ctx):
        self.log.append((self.name, "entry", cur, msg, nxt))

    def action(self, cur, msg, nxt, ctx):
        self.log.append((self.name, "action", cur, msg, nxt))
        return self.result

    def after_transition(self, cur, msg, nxt, ctx):
        self.log.append((self.name, "after_transition", cur, msg, nxt))

    def exit(self, cur, msg, nxt, ctx):
        self.log.append((self.name, "exit", cur, msg, nxt))


def _state_hook(log, tag):
    def hook(state_id, ctx):
        log.append((tag, state_id))
    return hook


class TestConstruction:
    """Engine construction from every supported source."""

    def test_initial_state_is_first_declared(self):
        engine = Engine(ROBOT)
        assert engine.current_state == "START"
        assert engine.states == ("START", "INTERMEDIATE", "ANKIT")

    def test_from_fsm_config(self):
        engine = Engine(config_from_mapping(ROBOT))
        assert engine.current_state == "START"

    def test_from_xml_bytes(self):
        xml = b'<FSM><STATE id="S0"><M id="go" nextState="S1"/></STATE><STATE id="S1"/></FSM>'
        engine = Engine(xml)
        assert engine.states == ("S0", "S1")

    def test_bad_source_raises_config_error(self, tmp_path):
        with pytest.raises(ConfigError):
            Engine(tmp_path / "missing.xml")

    def test_non_mapping_transitions_raise_config_error(self):
        with pytest.raises(ConfigError):
            Engine({"A": ["go"]})

    def test_dangling_reference_fails_fast(self):
        with pytest.raises(ConfigIntegrityError):
            Engine({"A": {"go": "walk:B"}})

    def test_context_and_default_action_stored(self):
        hook = Recorder([])
        engine = Engine(ROBOT, hook, {"n": 1})
        assert engine.default_action is hook
        assert engine.shared_context == {"n": 1}
        assert engine.settings == EngineConfig()


class TestLookupMiss:
    """Unknown messages never have side effects."""

    def test_unknown_message_returns_none(self):
        log = []
        engine = Engine(ROBOT, Recorder(log))
        engine.set_state_before_transition(_state_hook(log, "before"))
        engine.set_state_after_transition(_state_hook(log, "after"))

        assert engine.dispatch("JUMP") is None
        assert engine.current_state == "START"
        assert log == []

    def test_message_from_other_state_is_a_miss(self):
        engine = Engine(ROBOT, lambda *a: True)
        assert engine.dispatch("MOVERIGHT") is None
        assert engine.current_state == "START"

    @pytest.mark.parametrize("path", [[], ["MOVELEFT"], ["MOVELEFT", "MOVERIGHT"]])
    def test_every_state_ignores_absent_messages(self, path):
        engine = Engine(ROBOT, lambda *a: True)
        for step in path:
            engine.dispatch(step)
        state = engine.current_state
        for message in ("MOVE", "MOVELEFT", "MOVERIGHT", "JUMP"):
            if engine.accepts(message):
                continue
            assert engine.dispatch(message) is None
            assert engine.current_state == state


class TestHookOrder:
    """The full ordering contract of a transition attempt."""

    def test_accepted_transition(self):
        log = []
        engine = Engine(ROBOT, Recorder(log))
        engine.set_state_before_transition(_state_hook(log, "before"))
        engine.set_state_after_transition(_state_hook(log, "after"))

        result = engine.dispatch("MOVELEFT")

        assert log == [
            ("before", "INTERMEDIATE"),
            ("hook", "entry", "START", "MOVELEFT", "INTERMEDIATE"),
            ("hook", "action", "START", "MOVELEFT", "INTERMEDIATE"),
            ("hook", "after_transition", "START", "MOVELEFT", "INTERMEDIATE"),
            ("hook", "exit", "START", "MOVELEFT", "INTERMEDIATE"),
            ("after", "INTERMEDIATE"),
        ]
        assert engine.current_state == "INTERMEDIATE"
        assert result == TransitionResult(
            message="MOVELEFT",
            action_name="left",
            source_state="START",
            next_state="INTERMEDIATE",
            committed=True,
        )

    def test_refused_transition(self):
        log = []
        engine = Engine(ROBOT, Recorder(log, result=False))
        engine.set_state_before_transition(_state_hook(log, "before"))
        engine.set_state_after_transition(_state_hook(log, "after"))

        result = engine.dispatch("MOVELEFT")

        assert [entry[:2] for entry in log] == [
            ("before", "INTERMEDIATE"),
            ("hook", "entry"),
            ("hook", "action"),
            ("hook", "exit"),
            ("after", "INTERMEDIATE"),
        ]
        assert engine.current_state == "START"
        assert result.next_state == "INTERMEDIATE"
        assert result.committed is False

    def test_falsy_result_refuses(self):
        engine = Engine(ROBOT, lambda *a: None)
        engine.dispatch("MOVELEFT")
        assert engine.current_state == "START"

    def test_state_hooks_belong_to_target(self):
        """Only the target state's hooks run, not the source state's."""
        log = []
        engine = Engine(ROBOT, lambda *a: True)
        engine.set_state_before_transition(_state_hook(log, "before-start"), "START")
        engine.set_state_after_transition(_state_hook(log, "after-start"), "START")

        engine.dispatch("MOVELEFT")
        assert log == []

        engine2 = Engine(ROBOT, lambda *a: True)
        engine2.set_state_before_transition(_state_hook(log, "before-start"), "START")
        engine2.dispatch("MOVE")
        assert log == [("before-start", "START")]

    def test_state_hooks_receive_context(self):
        seen = []
        engine = Engine(ROBOT, lambda *a: True, context="ctx")
        engine.set_state_before_transition(lambda sid, ctx: seen.append(ctx))
        engine.dispatch("MOVE")
        assert seen == ["ctx"]


class TestNoGoverningHook:
    """Transitions with neither a bound nor a default action."""

    def test_commits_automatically(self):
        log = []
        engine = Engine(ROBOT)
        engine.set_state_before_transition(_state_hook(log, "before"))
        engine.set_state_after_transition(_state_hook(log, "after"))

        result = engine.dispatch("MOVELEFT")

        assert engine.current_state == "INTERMEDIATE"
        assert result.committed is True
        assert log == [("before", "INTERMEDIATE"), ("after", "INTERMEDIATE")]

    def test_require_action_raises_without_side_effects(self):
        log = []
        engine = Engine(ROBOT, settings=EngineConfig(require_action=True))
        engine.set_state_before_transition(_state_hook(log, "before"))

        with pytest.raises(MissingActionError) as exc_info:
            engine.dispatch("MOVELEFT")

        assert exc_info.value.state_id == "START"
        assert exc_info.value.message == "MOVELEFT"
        assert engine.current_state == "START"
        assert log == []

    def test_require_action_satisfied_by_default(self):
        engine = Engine(ROBOT, lambda *a: True, settings=EngineConfig(require_action=True))
        engine.dispatch("MOVELEFT")
        assert engine.current_state == "INTERMEDIATE"


class TestHookFaults:
    """Exceptions from hooks propagate; commit happens only after action."""

    class Boom(Exception):
        pass

    def _raising(self, where, log):
        boom = self.Boom

        class Faulty(Recorder):
            def entry(self, *args):
                super().entry(*args)
                if where == "entry":
                    raise boom(where)

            def action(self, *args):
                result = super().action(*args)
                if where == "action":
                    raise boom(where)
                return result

            def after_transition(self, *args):
                super().after_transition(*args)
                if where == "after_transition":
                    raise boom(where)

            def exit(self, *args):
                super().exit(*args)
                if where == "exit":
                    raise boom(where)

        return Faulty(log)

    @pytest.mark.parametrize("where", ["entry", "action"])
    def test_fault_before_commit_keeps_state(self, where):
        log = []
        engine = Engine(ROBOT, self._raising(where, log))
        engine.set_state_after_transition(_state_hook(log, "after"))

        with pytest.raises(self.Boom):
            engine.dispatch("MOVELEFT")

        assert engine.current_state == "START"
        assert ("after", "INTERMEDIATE") not in log

    @pytest.mark.parametrize("where", ["after_transition", "exit"])
    def test_fault_after_commit_keeps_commit(self, where):
        log = []
        engine = Engine(ROBOT, self._raising(where, log))

        with pytest.raises(self.Boom):
            engine.dispatch("MOVELEFT")

        assert engine.current_state == "INTERMEDIATE"

    def test_state_hook_fault_after_commit(self):
        engine = Engine(ROBOT, lambda *a: True)

        def explode(state_id, ctx):
            raise self.Boom(state_id)

        engine.set_state_after_transition(explode, "INTERMEDIATE")
        with pytest.raises(self.Boom):
            engine.dispatch("MOVELEFT")
        assert engine.current_state == "INTERMEDIATE"

    def test_before_hook_fault_prevents_action(self):
        log = []
        engine = Engine(ROBOT, Recorder(log))

        def explode(state_id, ctx):
            raise self.Boom(state_id)

        engine.set_state_before_transition(explode)
        with pytest.raises(self.Boom):
            engine.dispatch("MOVELEFT")
        assert log == []
        assert engine.current_state == "START"


class TestAccessors:
    """Read-only helpers."""

    def test_messages_of_current_state(self):
        engine = Engine(ROBOT)
        assert engine.messages() == ["MOVE", "MOVELEFT"]
        assert engine.messages("ANKIT") == []

    def test_accepts_and_next_state_for(self):
        engine = Engine(ROBOT)
        assert engine.accepts("MOVELEFT")
        assert not engine.accepts("JUMP")
        assert engine.next_state_for("MOVELEFT") == "INTERMEDIATE"
        assert engine.next_state_for("JUMP") is None

    def test_repr(self):
        assert repr(Engine(ROBOT)) == "Engine(current_state='START', states=3)"
