"""Process instance: builds the graph, drives it, and reports its outcome.

The process only talks to activities through the Activity contract
(activate/run/get_state/resume) and the flow events. Every entry point
(:meth:`Process.run`, :meth:`Process.signal`, :meth:`Process.resume`) runs the
synchronous cascade to completion and then settles the process status.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from bpmn_engine.engine.definition import ProcessDefinitionModel
from bpmn_engine.engine.flow.activity import Activity
from bpmn_engine.engine.flow.errors import (
    ActivityNotWaitingError,
    EngineError,
    StateReconstructionError,
)
from bpmn_engine.engine.flow.events import EventEmitter
from bpmn_engine.engine.flow.sequence_flow import Condition, SequenceFlow
from bpmn_engine.engine.flow.state import ProcessState
from bpmn_engine.engine.flow.tasks import UserTask

logger = logging.getLogger(__name__)

ACTIVITY_EVENTS: tuple[str, ...] = ("start", "wait", "end", "leave")


class ProcessStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    WAITING = "waiting"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"


class Process(EventEmitter):
    """A single process instance.

    Events emitted on the process (each also carries the process):
      - ``start``, ``end``, ``wait`` (with the waiting user task), ``stop``
      - ``error`` (with the :class:`EngineError`)

    Activity events are forwarded to ``listener`` as ``"<event>"`` and
    ``"<event>-<activity id>"``, e.g. ``"wait-task1"``.
    """

    def __init__(
        self,
        definition: ProcessDefinitionModel,
        *,
        variables: Mapping[str, Any] | None = None,
        conditions: Mapping[str, Condition] | None = None,
        listener: EventEmitter | None = None,
    ) -> None:
        super().__init__()
        self.definition = definition
        self.id = definition.id
        self.variables: dict[str, Any] = dict(variables or {})
        self.listener = listener
        self.status = ProcessStatus.PENDING
        self.error: EngineError | None = None

        graph = definition.build(variables=self.variables, conditions=conditions)
        self.activities: dict[str, Activity] = graph.activities
        self.flows: dict[str, SequenceFlow] = graph.flows

        for activity in self.activities.values():
            for event in ACTIVITY_EVENTS:
                activity.on(event, self._forward(event))

    def get_activity(self, activity_id: str) -> Activity:
        try:
            return self.activities[activity_id]
        except KeyError:
            raise KeyError(f"Process {self.id!r} has no activity {activity_id!r}") from None

    def get_flow(self, flow_id: str) -> SequenceFlow:
        try:
            return self.flows[flow_id]
        except KeyError:
            raise KeyError(f"Process {self.id!r} has no flow {flow_id!r}") from None

    @property
    def start_activities(self) -> list[Activity]:
        return [a for a in self.activities.values() if not a.inbound]

    @property
    def waiting_tasks(self) -> list[UserTask]:
        return [a for a in self.activities.values() if isinstance(a, UserTask) and a.waiting]

    @property
    def is_running(self) -> bool:
        return self.status in (ProcessStatus.RUNNING, ProcessStatus.WAITING)

    def run(self) -> None:
        if self.status is not ProcessStatus.PENDING:
            raise EngineError(f"Process {self.id!r} already started ({self.status.value})")

        logger.info("Process started", extra={"process_id": self.id})
        self._activate()
        self.emit("start", self)

        def _run_start_activities() -> None:
            for activity in self.start_activities:
                if self.status is ProcessStatus.STOPPED:
                    return
                activity.run()

        self._execute(_run_start_activities)

    def signal(self, activity_id: str, output: Mapping[str, Any] | None = None) -> None:
        activity = self.get_activity(activity_id)
        if not isinstance(activity, UserTask) or not activity.waiting:
            raise ActivityNotWaitingError(activity_id)
        if not self.is_running:
            raise EngineError(f"Process {self.id!r} is not running ({self.status.value})")

        logger.info("Signal received", extra={"process_id": self.id, "activity_id": activity_id})
        self._execute(lambda: activity.signal(output))

    def stop(self) -> None:
        """Stop the instance; flows resolved after this point reach no activity."""

        if self.status in (ProcessStatus.COMPLETED, ProcessStatus.FAILED, ProcessStatus.STOPPED):
            return
        self._deactivate()
        self.status = ProcessStatus.STOPPED
        logger.info("Process stopped", extra={"process_id": self.id})
        self.emit("stop", self)

    def get_state(self) -> ProcessState:
        return ProcessState(
            id=self.id,
            status=self.status.value,
            variables=dict(self.variables),
            children=[a.get_state() for a in self.activities.values()],
        )

    @classmethod
    def resume(
        cls,
        definition: ProcessDefinitionModel,
        state: ProcessState | dict[str, Any],
        *,
        conditions: Mapping[str, Condition] | None = None,
        listener: EventEmitter | None = None,
        strict: bool = True,
    ) -> Process:
        """Rebuild an instance from a snapshot and continue where it stopped.

        Every activity is restored before any of them proceeds, so a fan-out
        that was interrupted mid-way cascades into already restored targets.

        Raises:
            StateReconstructionError: the snapshot names activities or flows the
                definition does not have (only skipped when ``strict`` is false
                for whole activities).
        """

        if not isinstance(state, ProcessState):
            state = ProcessState.model_validate(state)
        if state.id != definition.id:
            raise StateReconstructionError(
                f"Snapshot of process {state.id!r} cannot resume definition {definition.id!r}"
            )

        process = cls(definition, variables=state.variables, conditions=conditions, listener=listener)
        unknown = [child.id for child in state.children if child.id not in process.activities]
        if unknown and strict:
            raise StateReconstructionError(f"Snapshot names unknown activities: {unknown}")
        for activity_id in unknown:
            logger.warning(
                "Skipping snapshot of unknown activity",
                extra={"process_id": process.id, "activity_id": activity_id},
            )

        process._activate()
        restored: list[Activity] = []
        for child in state.children:
            activity = process.activities.get(child.id)
            if activity is None:
                continue
            activity.restore(child)
            restored.append(activity)

        logger.info(
            "Process resumed",
            extra={"process_id": process.id, "activities": len(restored)},
        )

        def _proceed() -> None:
            for activity in restored:
                activity.proceed()

        process._execute(_proceed)
        return process

    def _activate(self) -> None:
        self.status = ProcessStatus.RUNNING
        for activity in self.activities.values():
            activity.activate()

    def _deactivate(self) -> None:
        for activity in self.activities.values():
            activity.deactivate()

    def _execute(self, step: Callable[[], None]) -> None:
        try:
            step()
        except EngineError as e:
            self._fail(e)
            return
        self._settle()

    def _fail(self, error: EngineError) -> None:
        self.status = ProcessStatus.FAILED
        self.error = error
        self._deactivate()
        logger.error("Process failed", extra={"process_id": self.id, "error": str(error)})
        self.emit("error", error, self)

    def _settle(self) -> None:
        if self.status is not ProcessStatus.RUNNING and self.status is not ProcessStatus.WAITING:
            return

        waiting = self.waiting_tasks
        if waiting:
            self.status = ProcessStatus.WAITING
            logger.info(
                "Process waiting",
                extra={"process_id": self.id, "waiting": [t.id for t in waiting]},
            )
            return

        entered = [a.id for a in self.activities.values() if a.entered]
        if entered:
            # Nothing can arrive from outside any more, so these will never resolve.
            logger.warning(
                "Process has entered activities but nothing is waiting",
                extra={"process_id": self.id, "entered": entered},
            )
            self.status = ProcessStatus.RUNNING
            return

        self.status = ProcessStatus.COMPLETED
        self._deactivate()
        logger.info("Process completed", extra={"process_id": self.id})
        self.emit("end", self)

    def _forward(self, event: str) -> Callable[[Activity], None]:
        def _listener(activity: Activity) -> None:
            if event == "wait":
                self.emit("wait", activity, self)
            if self.listener is not None:
                self.listener.emit(event, activity, self)
                self.listener.emit(f"{event}-{activity.id}", activity, self)

        return _listener
