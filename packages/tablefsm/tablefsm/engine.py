"""Engine - message dispatch, hook sequencing, and override API."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from tablefsm.config import EngineConfig
from tablefsm.hooks import ActionFn, ActionHook, as_action_hook
from tablefsm.loader import ConfigSource, FSMConfig, config_from_mapping, load_config
from tablefsm.log import get_logger
from tablefsm.table import StateTable
from tablefsm.types import (
    MessageId,
    MissingActionError,
    StateHook,
    StateId,
    TransitionResult,
)

_LOG = get_logger("engine")

StateSelector = str | Iterable[str] | None


class Engine:
    """One finite state machine instance.

    ``config`` may be an FSMConfig, a ``{state: {message: entry}}`` mapping,
    or anything ``load_config`` reads (path, bytes, binary stream). The first
    declared state is the initial state.

    Not thread-safe: callers sharing an Engine across threads must serialize
    ``dispatch`` and every ``set_*`` call themselves.
    """

    def __init__(
        self,
        config: FSMConfig | Mapping[str, Mapping[str, Any]] | ConfigSource,
        default_action: ActionHook | ActionFn | None = None,
        context: Any = None,
        *,
        settings: EngineConfig | None = None,
    ) -> None:
        if isinstance(config, FSMConfig):
            fsm_config = config
        elif isinstance(config, Mapping):
            fsm_config = config_from_mapping(config)
        else:
            fsm_config = load_config(config)
        self._table = StateTable.from_config(fsm_config)
        self._default_action = as_action_hook(default_action)
        self._context = context
        self._settings = settings if settings is not None else EngineConfig()
        _LOG.debug(
            "engine built with %d states, initial state %r",
            len(self._table), self._table.current.id,
        )

    @property
    def current_state(self) -> StateId:
        return self._table.current.id

    @property
    def states(self) -> tuple[StateId, ...]:
        return self._table.ids()

    @property
    def shared_context(self) -> Any:
        return self._context

    @property
    def default_action(self) -> ActionHook | None:
        return self._default_action

    @property
    def settings(self) -> EngineConfig:
        return self._settings

    def messages(self, state_id: str | None = None) -> list[MessageId]:
        """Message ids accepted by ``state_id`` (default: current state)."""
        state = self._table.current if state_id is None else self._table.get(state_id)
        return list(state.transitions)

    def accepts(self, message: str) -> bool:
        return self._table.current.transition(message) is not None

    def next_state_for(self, message: str) -> StateId | None:
        """Configured target of ``message`` from the current state, if any."""
        transition = self._table.current.transition(message)
        return None if transition is None else transition.next_state

    def dispatch(self, message: str) -> TransitionResult | None:
        """Feed one message to the machine.

        Returns None when the current state has no transition for
        ``message``; nothing else happens in that case. Otherwise runs, in
        order: the target state's before hook, the governing action's
        ``entry`` and ``action``, the commit plus ``after_transition`` if
        ``action`` returned truthy, ``exit`` on both branches, and finally
        the target state's after hook.

        The governing action is the transition's bound action, else the
        default action. With neither, the transition commits without any
        action hook (or raises MissingActionError under
        ``EngineConfig(require_action=True)``).

        Hook exceptions propagate. One raised by ``entry`` or ``action``
        leaves the current state untouched; later ones happen after the
        commit and do not undo it.
        """
        source = self._table.current
        transition = source.transition(message)
        if transition is None:
            _LOG.debug("state %r ignores message %r", source.id, message)
            return None

        target = self._table.get(transition.next_state)
        hook = transition.action if transition.action is not None else self._default_action
        if hook is None and self._settings.require_action:
            raise MissingActionError(source.id, transition.message)

        # Bind everything up front; overrides made by hooks apply from the next dispatch.
        ctx = self._context
        before, after = target.before, target.after
        args = (source.id, transition.message, target.id, ctx)

        if before is not None:
            before(target.id, ctx)

        accepted = True
        if hook is not None:
            hook.entry(*args)
            accepted = bool(hook.action(*args))

        if accepted:
            self._table.set_current(target.id)
            _LOG.debug("%r --%s--> %r", source.id, transition.message, target.id)
            if hook is not None:
                hook.after_transition(*args)
        else:
            _LOG.debug(
                "action refused %r --%s--> %r", source.id, transition.message, target.id,
            )

        if hook is not None:
            hook.exit(*args)

        if after is not None:
            after(target.id, ctx)

        return TransitionResult(
            message=transition.message,
            action_name=transition.action_name,
            source_state=source.id,
            next_state=transition.next_state,
            committed=accepted,
        )

    def set_action(
        self,
        message: str,
        hook: ActionHook | ActionFn | None,
        states: StateSelector = None,
    ) -> int:
        """Bind ``hook`` to ``message`` in the selected states.

        ``states`` is one id, an iterable of ids, or None for every state.
        States without a transition for ``message`` and unknown ids are
        skipped. Passing ``hook=None`` unbinds. Returns the number of
        transitions rebound.
        """
        action = as_action_hook(hook)
        bound = 0
        for state in self._table.select(states):
            if self._table.bind_action(state.id, message, action):
                bound += 1
        _LOG.debug("bound action for %r on %d transitions", message, bound)
        return bound

    def set_state_before_transition(
        self, hook: StateHook | None, states: StateSelector = None,
    ) -> None:
        """Install a hook run before any transition into the selected states.

        With no selector it covers every state present right now.
        """
        fn = _as_state_hook(hook)
        for state in self._table.select(states):
            self._table.set_before(state.id, fn)

    def set_state_after_transition(
        self, hook: StateHook | None, states: StateSelector = None,
    ) -> None:
        """Install a hook run after any transition attempt into the selected states."""
        fn = _as_state_hook(hook)
        for state in self._table.select(states):
            self._table.set_after(state.id, fn)

    def set_default_action(self, hook: ActionHook | ActionFn | None) -> None:
        self._default_action = as_action_hook(hook)

    def set_shared_context(self, context: Any) -> None:
        self._context = context

    def __repr__(self) -> str:
        return f"Engine(current_state={self.current_state!r}, states={len(self._table)})"


def _as_state_hook(hook: Any) -> StateHook | None:
    """Accept a plain callable or an object exposing ``invoked(state_id, ctx)``."""
    if hook is None:
        return None
    invoked = getattr(hook, "invoked", None)
    if callable(invoked):
        return invoked
    if callable(hook):
        return hook
    raise TypeError(f"Expected a state hook callable, got {type(hook).__qualname__}")
