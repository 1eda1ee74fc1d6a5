"""Action hook protocol, no-op base class and adapters."""
from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable

from tablefsm.types import MessageId, StateId

ActionFn = Callable[[StateId, MessageId, StateId, Any], bool]


@runtime_checkable
class ActionHook(Protocol):
    """Callbacks invoked around one transition attempt.

    Every member receives ``(current_state, message, next_state, context)``.
    Only ``action`` decides anything: a truthy return commits the move.
    ``entry`` runs before it, ``after_transition`` only after a commit, and
    ``exit`` after both branches.
    """

    def entry(
        self, current_state: StateId, message: MessageId, next_state: StateId, context: Any,
    ) -> None: ...

    def action(
        self, current_state: StateId, message: MessageId, next_state: StateId, context: Any,
    ) -> bool: ...

    def after_transition(
        self, current_state: StateId, message: MessageId, next_state: StateId, context: Any,
    ) -> None: ...

    def exit(
        self, current_state: StateId, message: MessageId, next_state: StateId, context: Any,
    ) -> None: ...


class Action:
    """Base class for hooks. Override ``action``; the rest default to no-ops."""

    def entry(
        self, current_state: StateId, message: MessageId, next_state: StateId, context: Any,
    ) -> None:
        pass

    def action(
        self, current_state: StateId, message: MessageId, next_state: StateId, context: Any,
    ) -> bool:
        raise NotImplementedError(f"{type(self).__qualname__} must implement action()")

    def after_transition(
        self, current_state: StateId, message: MessageId, next_state: StateId, context: Any,
    ) -> None:
        pass

    def exit(
        self, current_state: StateId, message: MessageId, next_state: StateId, context: Any,
    ) -> None:
        pass


class FunctionAction(Action):
    """Wraps ``fn(current_state, message, next_state, context) -> bool``."""

    def __init__(self, fn: ActionFn) -> None:
        self._fn = fn

    @property
    def fn(self) -> ActionFn:
        return self._fn

    def action(
        self, current_state: StateId, message: MessageId, next_state: StateId, context: Any,
    ) -> bool:
        return self._fn(current_state, message, next_state, context)

    def __repr__(self) -> str:
        return f"FunctionAction({self._fn!r})"


class _PartialAction(Action):
    """Fills in the optional members for an object that defines only some."""

    def __init__(self, target: Any) -> None:
        self._target = target

    @property
    def target(self) -> Any:
        return self._target

    def _forward(self, name: str, *args: Any) -> None:
        fn = getattr(self._target, name, None)
        if fn is not None:
            fn(*args)

    def entry(
        self, current_state: StateId, message: MessageId, next_state: StateId, context: Any,
    ) -> None:
        self._forward("entry", current_state, message, next_state, context)

    def action(
        self, current_state: StateId, message: MessageId, next_state: StateId, context: Any,
    ) -> bool:
        return self._target.action(current_state, message, next_state, context)

    def after_transition(
        self, current_state: StateId, message: MessageId, next_state: StateId, context: Any,
    ) -> None:
        self._forward("after_transition", current_state, message, next_state, context)

    def exit(
        self, current_state: StateId, message: MessageId, next_state: StateId, context: Any,
    ) -> None:
        self._forward("exit", current_state, message, next_state, context)

    def __repr__(self) -> str:
        return f"_PartialAction({self._target!r})"


_OPTIONAL_MEMBERS = ("entry", "after_transition", "exit")


def as_action_hook(hook: ActionHook | ActionFn | None) -> ActionHook | None:
    """Coerce a hook argument into something with all four members.

    ``None`` passes through. Objects that define ``action`` but not every
    optional member get no-op fill-ins; bare callables are wrapped in
    ``FunctionAction``. Classes, objects whose optional members are not
    callable, and anything else raise TypeError.
    """
    if hook is None:
        return None
    if isinstance(hook, type):
        raise TypeError(
            f"Expected an ActionHook instance, got the class {hook.__qualname__}"
        )
    if callable(getattr(hook, "action", None)):
        for name in _OPTIONAL_MEMBERS:
            member = getattr(hook, name, None)
            if member is not None and not callable(member):
                raise TypeError(
                    f"{type(hook).__qualname__}.{name} must be callable, "
                    f"got {type(member).__qualname__}"
                )
        if all(callable(getattr(hook, name, None)) for name in _OPTIONAL_MEMBERS):
            return hook
        return _PartialAction(hook)
    if callable(hook):
        return FunctionAction(hook)
    raise TypeError(f"Expected an ActionHook or callable, got {type(hook).__qualname__}")
