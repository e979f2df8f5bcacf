"""Sequence-flow propagation and the activity/gateway state machine.

This package holds the engine core:
- :class:`SequenceFlow`, resolved once per cycle as taken or discarded
- :class:`Activity`, the shared lifecycle and snapshot/resume contract
- :class:`ParallelGateway` and :class:`InclusiveGateway` join/fork logic
- the small set of task kinds used to drive a graph

Everything here is synchronous: resolving a flow runs the whole downstream
cascade before returning.
"""

from .activity import Activatable, Activity, ActivityKind, Runnable, Stateful
from .errors import (
    ActivityNotWaitingError,
    ConditionError,
    DefinitionError,
    EngineError,
    NoOutboundPathError,
    StateReconstructionError,
)
from .events import EventEmitter
from .gateways import InclusiveGateway, ParallelGateway
from .sequence_flow import Condition, FlowStatus, SequenceFlow
from .state import ActivityState, DeferredResolution, ProcessState
from .tasks import EndEvent, StartEvent, Task, UserTask

__all__ = [
    "Activatable",
    "Activity",
    "ActivityKind",
    "ActivityNotWaitingError",
    "ActivityState",
    "Condition",
    "ConditionError",
    "DefinitionError",
    "DeferredResolution",
    "EndEvent",
    "EngineError",
    "EventEmitter",
    "FlowStatus",
    "InclusiveGateway",
    "NoOutboundPathError",
    "ParallelGateway",
    "ProcessState",
    "Runnable",
    "SequenceFlow",
    "StartEvent",
    "StateReconstructionError",
    "Stateful",
    "Task",
    "UserTask",
]
