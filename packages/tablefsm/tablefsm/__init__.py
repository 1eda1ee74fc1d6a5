"""tablefsm - Table-driven finite state machine with pluggable action hooks."""
from __future__ import annotations

from tablefsm.config import EngineConfig
from tablefsm.engine import Engine
from tablefsm.hooks import Action, ActionHook, FunctionAction, as_action_hook
from tablefsm.loader import FSMConfig, TransitionSpec, config_from_mapping, load_config
from tablefsm.log import configure_logging, get_logger
from tablefsm.table import State, StateTable, Transition
from tablefsm.types import (
    ConfigError,
    ConfigIntegrityError,
    FSMError,
    MessageId,
    MissingActionError,
    StateHook,
    StateId,
    TransitionResult,
    UnknownStateError,
)

__all__ = [
    "Action",
    "ActionHook",
    "ConfigError",
    "ConfigIntegrityError",
    "Engine",
    "EngineConfig",
    "FSMConfig",
    "FSMError",
    "FunctionAction",
    "MessageId",
    "MissingActionError",
    "State",
    "StateHook",
    "StateId",
    "StateTable",
    "Transition",
    "TransitionResult",
    "TransitionSpec",
    "UnknownStateError",
    "as_action_hook",
    "config_from_mapping",
    "configure_logging",
    "get_logger",
    "load_config",
]
