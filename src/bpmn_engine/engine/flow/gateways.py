"""Parallel and inclusive gateways.

Both gateways share one join rule: wait until every inbound flow of the cycle
is resolved, then take the outbound side if at least one inbound flow was
taken, or discard every outbound flow if all of them were discarded. The join
width (inbound count) is independent of the fork width, so the same class
serves as a pure fork, a pure join, or a combined join/fork.

They differ only on the outbound side: a parallel gateway takes every outbound
flow, an inclusive gateway takes the flows whose condition holds (or the
default flow) and discards the rest.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .activity import Activity, ActivityKind
from .errors import NoOutboundPathError
from .sequence_flow import SequenceFlow

logger = logging.getLogger(__name__)


class ParallelGateway(Activity):
    kind = ActivityKind.PARALLEL_GATEWAY

    @property
    def is_join(self) -> bool:
        return len(self.inbound) > 1

    @property
    def pending_join(self) -> bool:
        return self.is_join and bool(self._pending_inbound)

    def run(self) -> None:
        """Fork straight away unless there is more than one inbound flow to wait for."""

        self.activate()
        if self.is_join:
            logger.debug(
                "Gateway waiting for inbound flows",
                extra={"activity_id": self.id, "pending_inbound": self._pending_inbound},
            )
            return

        self._pending_inbound = None
        self._discarded_inbound = []
        self.entered = True
        self.taken = True
        self._take_outbound()

    def _on_inbound(self, flow: SequenceFlow, *, discarded: bool) -> None:
        if not self._started:
            self._enter()

        if self._pending_inbound:
            logger.debug(
                "Gateway joining",
                extra={
                    "activity_id": self.id,
                    "flow_id": flow.id,
                    "pending_inbound": self._pending_inbound,
                },
            )
            return

        self._pending_inbound = None
        if self.taken:
            logger.debug("Gateway joined", extra={"activity_id": self.id})
            self._discarded_inbound = []
            self._take_outbound()
        else:
            logger.debug("Gateway join discarded", extra={"activity_id": self.id})
            self._discarded_inbound = []
            self._discard_outbound()

    def _outbound_interrupted(self) -> bool:
        return self._pending_inbound is None and super()._outbound_interrupted()


class InclusiveGateway(ParallelGateway):
    kind = ActivityKind.INCLUSIVE_GATEWAY

    @property
    def default_flow(self) -> SequenceFlow | None:
        for flow in self.outbound:
            if flow.is_default:
                return flow
        return None

    def _select_outbound(self) -> Sequence[SequenceFlow]:
        selected = [
            flow
            for flow in self.outbound
            if not flow.is_default and flow.evaluate(self.variables)
        ]
        if selected:
            return selected

        default = self.default_flow
        if default is None:
            logger.error(
                "No outbound flow qualifies and no default flow is defined",
                extra={"activity_id": self.id, "outbound": [f.id for f in self.outbound]},
            )
            raise NoOutboundPathError(self.id)
        return [default]
