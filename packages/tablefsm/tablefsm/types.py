"""Shared identities, descriptors and error types for tablefsm."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, NewType

StateId = NewType("StateId", str)
MessageId = NewType("MessageId", str)

StateHook = Callable[[StateId, Any], None]


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """Outcome of a dispatch that matched a configured transition.

    ``next_state`` is the configured target; it is reported whether or not
    the action accepted the move. ``committed`` tells the two apart.
    """

    message: MessageId
    action_name: str
    source_state: StateId
    next_state: StateId
    committed: bool


class FSMError(Exception):
    """Base class for every error raised by tablefsm."""


class ConfigError(FSMError):
    """Raised when a configuration source cannot be read, parsed or accepted."""


class ConfigIntegrityError(ConfigError):
    """Raised when a transition targets a state the table does not declare."""

    def __init__(self, state_id: str, message: str, next_state: str) -> None:
        self.state_id = state_id
        self.message = message
        self.next_state = next_state
        super().__init__(
            f"State {state_id!r} routes message {message!r} "
            f"to undeclared state {next_state!r}"
        )


class UnknownStateError(FSMError, KeyError):
    """Raised when looking up a state id the table does not hold."""

    def __init__(self, state_id: str) -> None:
        self.state_id = state_id
        super().__init__(f"Unknown state {state_id!r}")


class MissingActionError(FSMError):
    """Raised when a transition has no action and the engine requires one."""

    def __init__(self, state_id: str, message: str) -> None:
        self.state_id = state_id
        self.message = message
        super().__init__(
            f"No action governs message {message!r} in state {state_id!r}"
        )
