"""Configuration loading: XML documents and in-memory tables into FSMConfig.

The XML layout is a flat list of ``STATE`` elements, in document order::

    <FSM>
        <STATE id="START">
            <MESSAGE id="MOVE" action="stay" nextState="START"/>
            <MESSAGE id="MOVELEFT" action="left" nextState="INTERMEDIATE"/>
        </STATE>
        <STATE id="INTERMEDIATE">
            <MESSAGE id="MOVERIGHT" action="right" nextState="ANKIT"/>
        </STATE>
        <STATE id="ANKIT"/>
    </FSM>

Every element child of a ``STATE`` is one transition entry; its tag is not
inspected. ``id`` and ``nextState`` are required, ``action`` is an
informational label and defaults to the empty string.
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import IO, Any, Union
from xml.etree import ElementTree

from tablefsm.log import get_logger
from tablefsm.types import ConfigError, MessageId, StateId

_LOG = get_logger("loader")

STATE_TAG = "STATE"
ID_ATTR = "id"
ACTION_ATTR = "action"
NEXT_STATE_ATTR = "nextState"

ConfigSource = Union[str, os.PathLike, bytes, IO[bytes]]


@dataclass(frozen=True, slots=True)
class TransitionSpec:
    """One raw ``message -> next_state`` entry as read from a source."""

    message: MessageId
    action_name: str
    next_state: StateId


@dataclass(frozen=True, slots=True)
class FSMConfig:
    """Immutable loader output. ``states`` keeps declaration order."""

    states: tuple[StateId, ...]
    transitions: Mapping[StateId, tuple[TransitionSpec, ...]]

    def transitions_for(self, state_id: str) -> tuple[TransitionSpec, ...]:
        return self.transitions.get(StateId(state_id), ())


def split_pair(encoded: str) -> tuple[str, str]:
    """Split ``"actionName:nextStateId"`` on the first colon.

    >>> split_pair("go:NEXT")
    ('go', 'NEXT')
    """
    action_name, sep, next_state = encoded.partition(":")
    if not sep:
        raise ConfigError(f"Transition {encoded!r} is not of the form 'action:nextState'")
    return action_name, next_state


def load_config(source: ConfigSource) -> FSMConfig:
    """Parse an XML configuration from a path, raw bytes or a binary stream.

    Raises ConfigError when the source cannot be read or parsed, or when the
    declared table is malformed.
    """
    try:
        if isinstance(source, bytes):
            root = ElementTree.fromstring(source)
        elif isinstance(source, (str, os.PathLike)) or hasattr(source, "read"):
            root = ElementTree.parse(source).getroot()
        else:
            raise ConfigError(
                f"Unsupported configuration source {type(source).__qualname__}"
            )
    except ElementTree.ParseError as exc:
        raise ConfigError(f"Malformed configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration: {exc}") from exc
    return _from_element(root)


def _from_element(root: ElementTree.Element) -> FSMConfig:
    builder = _Builder()
    # iter() includes the root itself, so a bare <STATE> document still loads.
    for node in root.iter(STATE_TAG):
        state_id = node.get(ID_ATTR)
        if not state_id:
            raise ConfigError(f"<{STATE_TAG}> element without an {ID_ATTR!r} attribute")
        builder.add_state(state_id)
        for child in node:
            if not isinstance(child.tag, str):
                # comments and processing instructions
                continue
            builder.add_transition(
                state_id,
                child.get(ID_ATTR),
                child.get(ACTION_ATTR, ""),
                child.get(NEXT_STATE_ATTR),
            )
    return builder.build()


def config_from_mapping(table: Mapping[str, Mapping[str, Any]]) -> FSMConfig:
    """Build an FSMConfig from ``{state: {message: entry}}``.

    Each entry may be an encoded ``"action:nextState"`` string, an
    ``(action, next_state)`` pair, or a mapping with ``nextState`` and an
    optional ``action`` key. Mapping order is declaration order.
    """
    builder = _Builder()
    for state_id, messages in table.items():
        builder.add_state(state_id)
        if messages is None:
            messages = {}
        elif not isinstance(messages, Mapping):
            raise ConfigError(
                f"State {state_id!r}: transitions must be a mapping, "
                f"got {type(messages).__qualname__}"
            )
        for message, entry in messages.items():
            action_name, next_state = _coerce_entry(state_id, message, entry)
            builder.add_transition(state_id, message, action_name, next_state)
    return builder.build()


def _coerce_entry(state_id: str, message: str, entry: Any) -> tuple[str, str | None]:
    if isinstance(entry, str):
        return split_pair(entry)
    if isinstance(entry, Mapping):
        return entry.get(ACTION_ATTR, ""), entry.get(NEXT_STATE_ATTR)
    if isinstance(entry, (tuple, list)) and len(entry) == 2:
        return entry[0], entry[1]
    raise ConfigError(
        f"State {state_id!r} message {message!r}: unsupported entry {entry!r}"
    )


class _Builder:
    """Accumulates states and transitions, rejecting anything incomplete."""

    def __init__(self) -> None:
        self._states: list[StateId] = []
        self._transitions: dict[StateId, dict[MessageId, TransitionSpec]] = {}

    def add_state(self, state_id: Any) -> None:
        if not isinstance(state_id, str) or not state_id:
            raise ConfigError(f"Invalid state id {state_id!r}")
        sid = StateId(state_id)
        if sid in self._transitions:
            raise ConfigError(f"Duplicate state id {state_id!r}")
        self._states.append(sid)
        self._transitions[sid] = {}

    def add_transition(
        self,
        state_id: str,
        message: Any,
        action_name: Any,
        next_state: Any,
    ) -> None:
        if not isinstance(message, str) or not message:
            raise ConfigError(f"State {state_id!r} has a transition without a message id")
        if not isinstance(next_state, str) or not next_state:
            raise ConfigError(
                f"State {state_id!r} message {message!r} has no {NEXT_STATE_ATTR!r}"
            )
        if action_name is None:
            action_name = ""
        if not isinstance(action_name, str):
            raise ConfigError(
                f"State {state_id!r} message {message!r}: action name must be a string"
            )
        entries = self._transitions[StateId(state_id)]
        mid = MessageId(message)
        if mid in entries:
            raise ConfigError(f"State {state_id!r} declares message {message!r} twice")
        entries[mid] = TransitionSpec(mid, action_name, StateId(next_state))

    def build(self) -> FSMConfig:
        if not self._states:
            raise ConfigError("Configuration declares no states")
        _LOG.debug("loaded %d states", len(self._states))
        return FSMConfig(
            states=tuple(self._states),
            transitions=MappingProxyType({
                sid: tuple(entries.values())
                for sid, entries in self._transitions.items()
            }),
        )
