"""State and transition records, and the StateTable that owns them."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from tablefsm.hooks import ActionHook
from tablefsm.loader import FSMConfig
from tablefsm.log import get_logger
from tablefsm.types import (
    ConfigIntegrityError,
    MessageId,
    StateHook,
    StateId,
    UnknownStateError,
)

_LOG = get_logger("table")


@dataclass(slots=True)
class Transition:
    """A configured ``message -> next_state`` edge with its optional bound action."""

    message: MessageId
    next_state: StateId
    action_name: str = ""
    action: ActionHook | None = None


@dataclass(slots=True)
class State:
    """A node of the machine. ``transitions`` is keyed by message id."""

    id: StateId
    transitions: dict[MessageId, Transition] = field(default_factory=dict)
    before: StateHook | None = None
    after: StateHook | None = None

    def transition(self, message: str) -> Transition | None:
        return self.transitions.get(MessageId(message))


class StateTable:
    """Ordered arena of States plus the current-state pointer.

    Built once from an FSMConfig. Every table gets fresh State and
    Transition records, so two tables built from the same config never
    share hooks. Hooks are written through ``bind_action``, ``set_before``
    and ``set_after`` rather than by mutating records handed out elsewhere.
    """

    def __init__(self, states: Iterable[State]) -> None:
        self._states: dict[StateId, State] = {}
        for state in states:
            if state.id in self._states:
                raise ValueError(f"Duplicate state id {state.id!r}")
            self._states[state.id] = state
        if not self._states:
            raise ValueError("StateTable needs at least one state")
        self._current: State = next(iter(self._states.values()))

    @classmethod
    def from_config(cls, config: FSMConfig) -> StateTable:
        """Build a table, checking every next-state reference.

        Raises ConfigIntegrityError on the first transition that targets an
        undeclared state.
        """
        declared = set(config.states)
        states: list[State] = []
        for state_id in config.states:
            state = State(state_id)
            for spec in config.transitions_for(state_id):
                if spec.next_state not in declared:
                    raise ConfigIntegrityError(state_id, spec.message, spec.next_state)
                state.transitions[spec.message] = Transition(
                    spec.message, spec.next_state, spec.action_name,
                )
            states.append(state)
        return cls(states)

    @property
    def current(self) -> State:
        return self._current

    def set_current(self, state_id: str) -> None:
        self._current = self.get(state_id)

    def get(self, state_id: str) -> State:
        """Return the State for ``state_id``. Raises UnknownStateError if absent."""
        try:
            return self._states[StateId(state_id)]
        except KeyError:
            raise UnknownStateError(state_id) from None

    def has(self, state_id: str) -> bool:
        return state_id in self._states

    def states(self) -> tuple[State, ...]:
        """All states in declaration order."""
        return tuple(self._states.values())

    def ids(self) -> tuple[StateId, ...]:
        return tuple(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def select(self, states: str | Iterable[str] | None) -> list[State]:
        """Resolve a state selector to live States, in declaration order.

        ``None`` or an empty iterable selects every state. A single string is
        one id. Unknown ids are skipped.
        """
        if states is None:
            return list(self._states.values())
        wanted = {states} if isinstance(states, str) else set(states)
        if not wanted:
            return list(self._states.values())
        unknown = wanted.difference(self._states)
        if unknown:
            _LOG.debug("skipping unknown states %s", sorted(unknown))
        return [s for sid, s in self._states.items() if sid in wanted]

    def bind_action(self, state_id: str, message: str, hook: ActionHook | None) -> bool:
        """Replace the bound action of one transition.

        Returns False when the state has no transition for ``message``.
        """
        transition = self.get(state_id).transition(message)
        if transition is None:
            return False
        transition.action = hook
        return True

    def set_before(self, state_id: str, hook: StateHook | None) -> None:
        self.get(state_id).before = hook

    def set_after(self, state_id: str, hook: StateHook | None) -> None:
        self.get(state_id).after = hook
