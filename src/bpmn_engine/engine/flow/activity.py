"""Generic activity lifecycle shared by every node kind.

An activity owns ordered inbound and outbound flow lists. Once activated it
listens to its inbound flows and keeps three pieces of bookkeeping for the
current cycle:

- ``pending_inbound``: inbound flow ids not yet resolved,
- ``discarded_inbound``: inbound flow ids resolved as discarded,
- ``pending_outbound``: outbound flow ids not yet resolved.

Subclasses decide when the inbound side is satisfied (:meth:`Activity._on_inbound`)
and which outbound flows qualify (:meth:`Activity._select_outbound`). Outbound
resolution itself, event emission and snapshot/resume live here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, MutableMapping, Sequence
from enum import Enum
from typing import Any, ClassVar, Protocol, runtime_checkable

from .errors import StateReconstructionError
from .events import EventEmitter
from .sequence_flow import SequenceFlow
from .state import ActivityState, DeferredResolution

logger = logging.getLogger(__name__)


class ActivityKind(str, Enum):
    START_EVENT = "startEvent"
    END_EVENT = "endEvent"
    TASK = "task"
    USER_TASK = "userTask"
    PARALLEL_GATEWAY = "parallelGateway"
    INCLUSIVE_GATEWAY = "inclusiveGateway"


@runtime_checkable
class Activatable(Protocol):
    def activate(self) -> None: ...

    def deactivate(self) -> None: ...


@runtime_checkable
class Runnable(Protocol):
    def run(self) -> None: ...


@runtime_checkable
class Stateful(Protocol):
    def get_state(self) -> ActivityState: ...

    def resume(self, state: ActivityState | dict[str, Any]) -> None: ...


class Activity(EventEmitter):
    """Base activity: behaves as a pass-through task.

    Events (each carries the activity):
      - ``start``: the activity has entered its cycle
      - ``end``: outbound flows were taken and the cascade has returned
      - ``leave``: outbound resolution finished, taken or discarded
    """

    kind: ClassVar[ActivityKind] = ActivityKind.TASK

    def __init__(
        self,
        id: str,
        *,
        inbound: Iterable[SequenceFlow] = (),
        outbound: Iterable[SequenceFlow] = (),
        variables: MutableMapping[str, Any] | None = None,
    ) -> None:
        super().__init__()
        self.id = id
        self.inbound: list[SequenceFlow] = list(inbound)
        self.outbound: list[SequenceFlow] = list(outbound)
        self.variables: MutableMapping[str, Any] = variables if variables is not None else {}

        self.activated = False
        self.entered = False
        self.taken = False

        self._started = False
        self._pending_inbound: list[str] | None = None
        self._discarded_inbound: list[str] = []
        self._pending_outbound: list[str] | None = None

        # Inbound resolutions that loop back while outbound flows are being resolved.
        self._resolving = False
        self._deferred_inbound: list[tuple[SequenceFlow, bool]] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r})"

    # -- observable bookkeeping -------------------------------------------------

    @property
    def pending_inbound(self) -> list[str] | None:
        return list(self._pending_inbound) if self._pending_inbound is not None else None

    @property
    def discarded_inbound(self) -> list[str]:
        return list(self._discarded_inbound)

    @property
    def pending_outbound(self) -> list[str] | None:
        return list(self._pending_outbound) if self._pending_outbound is not None else None

    def get_inbound(self, flow_id: str) -> SequenceFlow:
        return _find(self.inbound, flow_id, self.id)

    def get_outbound(self, flow_id: str) -> SequenceFlow:
        return _find(self.outbound, flow_id, self.id)

    # -- lifecycle --------------------------------------------------------------

    def activate(self) -> None:
        """Subscribe to inbound flows and arm the pending sets. Idempotent."""

        if self.activated:
            return
        self.activated = True
        for flow in self.inbound:
            flow.on("taken", self._on_inbound_taken)
            flow.on("discarded", self._on_inbound_discarded)
        self._arm()

    def deactivate(self) -> None:
        if not self.activated:
            return
        self.activated = False
        self._deferred_inbound = []
        for flow in self.inbound:
            flow.off("taken", self._on_inbound_taken)
            flow.off("discarded", self._on_inbound_discarded)

    def run(self) -> None:
        self.activate()
        self._pending_inbound = None
        self._discarded_inbound = []
        self.taken = True
        self._enter()
        self.execute()

    def execute(self) -> None:
        """Do the activity's own work; pass-through by default."""

        self._take_outbound()

    # -- inbound side -----------------------------------------------------------

    def _arm(self) -> None:
        self._started = False
        self.taken = False
        self._pending_inbound = [f.id for f in self.inbound] or None
        self._discarded_inbound = []
        self._pending_outbound = [f.id for f in self.outbound] or None

    def _on_inbound_taken(self, flow: SequenceFlow) -> None:
        self._inbound_resolved(flow, discarded=False)

    def _on_inbound_discarded(self, flow: SequenceFlow) -> None:
        self._inbound_resolved(flow, discarded=True)

    def _inbound_resolved(self, flow: SequenceFlow, *, discarded: bool) -> None:
        if self._resolving:
            logger.debug(
                "Inbound flow resolved during outbound resolution; deferring",
                extra={"activity_id": self.id, "flow_id": flow.id},
            )
            self._deferred_inbound.append((flow, discarded))
            return

        if self._pending_inbound is None and not self.entered:
            # Previous cycle is complete; this is a re-entry.
            self._arm()

        if self._pending_inbound is None or flow.id not in self._pending_inbound:
            logger.warning(
                "Inbound flow already accounted for in this cycle; ignoring",
                extra={"activity_id": self.id, "flow_id": flow.id},
            )
            return

        self._pending_inbound.remove(flow.id)
        if discarded:
            self._discarded_inbound.append(flow.id)
        else:
            self.taken = True

        self._on_inbound(flow, discarded=discarded)

    def _on_inbound(self, flow: SequenceFlow, *, discarded: bool) -> None:
        """Non-gateway rule: enter on every take, discard once all inbound were discarded."""

        all_resolved = not self._pending_inbound
        if all_resolved:
            self._pending_inbound = None

        if not discarded:
            if self.entered:
                logger.warning(
                    "Activity already running; inbound take ignored",
                    extra={"activity_id": self.id, "flow_id": flow.id},
                )
                return
            self._enter()
            self.execute()
            return

        if all_resolved and len(self._discarded_inbound) == len(self.inbound):
            self._discarded_inbound = []
            self._discard_outbound()

    # -- outbound side ----------------------------------------------------------

    def _select_outbound(self) -> Sequence[SequenceFlow]:
        """Outbound flows to take; every other pending outbound flow is discarded."""

        return self.outbound

    def _take_outbound(self) -> None:
        if self._pending_outbound is None:
            self._pending_outbound = [f.id for f in self.outbound]

        selected = {f.id for f in self._select_outbound()}
        self._resolving = True
        for flow in self.outbound:
            if flow.id not in self._pending_outbound:
                continue
            self._pending_outbound.remove(flow.id)
            flow.reset()
            if flow.id in selected:
                flow.take()
            else:
                flow.discard()
            if not self._started:
                self._emit_start()

        self._pending_outbound = None
        if not self._started:
            self._emit_start()
        logger.debug("Activity end", extra={"activity_id": self.id})
        self.emit("end", self)
        self._leave()

    def _discard_outbound(self) -> None:
        if self._pending_outbound is None:
            self._pending_outbound = [f.id for f in self.outbound]

        self._resolving = True
        for flow in self.outbound:
            if flow.id not in self._pending_outbound:
                continue
            self._pending_outbound.remove(flow.id)
            flow.reset()
            flow.discard()

        self._pending_outbound = None
        self._leave()

    def _enter(self) -> None:
        self.entered = True
        if self._pending_outbound is None:
            self._pending_outbound = [f.id for f in self.outbound]
        self._emit_start()

    def _emit_start(self) -> None:
        self._started = True
        logger.debug("Activity start", extra={"activity_id": self.id})
        self.emit("start", self)

    def _leave(self) -> None:
        self.entered = False
        self._started = False
        self._resolving = False
        logger.debug("Activity leave", extra={"activity_id": self.id, "taken": self.taken})
        self.emit("leave", self)
        self._replay_deferred()

    def _replay_deferred(self) -> None:
        while self._deferred_inbound and not self._resolving:
            flow, discarded = self._deferred_inbound.pop(0)
            self._inbound_resolved(flow, discarded=discarded)

    # -- state ------------------------------------------------------------------

    def get_state(self) -> ActivityState:
        joining = self._pending_inbound is not None
        return ActivityState(
            id=self.id,
            type=self.kind.value,
            entered=self.entered,
            taken=self.taken,
            pending_inbound=list(self._pending_inbound) if self._pending_inbound else None,
            discarded_inbound=(
                list(self._discarded_inbound) if joining and self._discarded_inbound else None
            ),
            pending_outbound=(
                list(self._pending_outbound) if self._pending_outbound is not None else None
            ),
            deferred_inbound=(
                [
                    DeferredResolution(id=flow.id, discarded=discarded)
                    for flow, discarded in self._deferred_inbound
                ]
                or None
            ),
        )

    def resume(self, state: ActivityState | dict[str, Any]) -> None:
        """Rebuild the pending sets from ``state`` and continue interrupted outbound work."""

        self.restore(state)
        self.proceed()

    def restore(self, state: ActivityState | dict[str, Any]) -> ActivityState:
        """Rebuild the pending sets from ``state`` without resolving anything.

        Flows are matched by id against the current flow lists, so the snapshot
        may come from a different (structurally identical) graph instance.
        """

        if not isinstance(state, ActivityState):
            state = ActivityState.model_validate(state)
        if state.type != self.kind.value:
            raise StateReconstructionError(
                f"Activity {self.id!r} is a {self.kind.value}, snapshot describes a {state.type}"
            )

        self.activate()
        self.entered = state.entered
        self.taken = state.taken
        self._started = state.entered
        self._pending_inbound = _match(state.pending_inbound, self.inbound, self.id, "inbound")
        self._discarded_inbound = (
            _match(state.discarded_inbound, self.inbound, self.id, "inbound") or []
        )
        self._pending_outbound = _match(state.pending_outbound, self.outbound, self.id, "outbound")
        if self._pending_inbound == []:
            self._pending_inbound = None

        deferred = state.deferred_inbound or []
        _match([d.id for d in deferred], self.inbound, self.id, "inbound")
        self._deferred_inbound = [(self.get_inbound(d.id), d.discarded) for d in deferred]
        self._resolving = bool(self._deferred_inbound) or self._fanning_out()

        logger.debug(
            "Activity restored",
            extra={
                "activity_id": self.id,
                "pending_inbound": self._pending_inbound,
                "pending_outbound": self._pending_outbound,
                "deferred_inbound": [d.id for d in deferred],
            },
        )
        return state

    def proceed(self) -> None:
        """Finish work the snapshot interrupted.

        That is the remaining outbound fan-out, a ``leave`` still owed after
        ``end``, and any loop-back resolutions queued during the fan-out (they
        are delivered on ``leave``).
        """

        if self._outbound_interrupted():
            self._resolve_remaining_outbound()
        elif self.entered and self._pending_outbound is None:
            # Stopped between ``end`` and ``leave``.
            self._leave()
        elif self._deferred_inbound:
            self._resolving = False
            self._replay_deferred()

    def _fanning_out(self) -> bool:
        """Some, but not all, outbound flows of the current cycle are resolved."""

        return self._pending_outbound is not None and len(self._pending_outbound) < len(
            self.outbound
        )

    def _outbound_interrupted(self) -> bool:
        if self._pending_outbound is None:
            return False
        if self.entered:
            return True
        # Not entered, but the inbound side is settled: an interrupted discard fan-out.
        return bool(self.inbound) and self._pending_inbound is None

    def _resolve_remaining_outbound(self) -> None:
        if self.taken:
            self._take_outbound()
        else:
            self._discard_outbound()


def _find(flows: Sequence[SequenceFlow], flow_id: str, activity_id: str) -> SequenceFlow:
    for flow in flows:
        if flow.id == flow_id:
            return flow
    raise KeyError(f"Activity {activity_id!r} has no flow {flow_id!r}")


def _match(
    ids: list[str] | None,
    flows: Sequence[SequenceFlow],
    activity_id: str,
    side: str,
) -> list[str] | None:
    if ids is None:
        return None
    known = {f.id for f in flows}
    unknown = [i for i in ids if i not in known]
    if unknown:
        raise StateReconstructionError(
            f"Activity {activity_id!r} has no {side} flow(s) {', '.join(unknown)}"
        )
    wanted = set(ids)
    return [f.id for f in flows if f.id in wanted]
