"""Engine settings dataclass."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    """Immutable per-engine policy.

    Attributes:
        require_action: When False (the default), a transition with neither a
            bound action nor a default action commits unconditionally. When
            True, dispatching such a transition raises MissingActionError
            before any hook runs.
    """

    require_action: bool = False
