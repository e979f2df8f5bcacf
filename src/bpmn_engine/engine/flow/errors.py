from __future__ import annotations

from dataclasses import dataclass


class EngineError(Exception):
    """Base class for errors raised by the process engine."""


class DefinitionError(EngineError, ValueError):
    pass


class StateReconstructionError(EngineError):
    """Raised when a snapshot does not match the graph it is resumed against."""


@dataclass(frozen=True, slots=True)
class NoOutboundPathError(EngineError):
    """Raised when a conditional fork has no eligible outbound flow and no default."""

    activity_id: str

    def __str__(self) -> str:
        return f"No outbound path from {self.activity_id!r}: no condition matched and no default flow"


@dataclass(frozen=True, slots=True)
class ActivityNotWaitingError(EngineError):
    activity_id: str

    def __str__(self) -> str:
        return f"Activity {self.activity_id!r} is not waiting for a signal"


@dataclass(frozen=True, slots=True)
class ConditionError(EngineError):
    """Raised when a flow condition fails while being evaluated."""

    flow_id: str
    cause: Exception

    def __str__(self) -> str:
        return f"Condition on flow {self.flow_id!r} failed: {self.cause!r}"
