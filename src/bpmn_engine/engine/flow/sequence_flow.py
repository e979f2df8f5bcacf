from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from .errors import ConditionError
from .events import EventEmitter

logger = logging.getLogger(__name__)

Condition = Callable[[Mapping[str, Any]], bool]


class FlowStatus(str, Enum):
    UNRESOLVED = "unresolved"
    TAKEN = "taken"
    DISCARDED = "discarded"


class SequenceFlow(EventEmitter):
    """A directed edge between two activities.

    The flow only knows the ids of its source and target. The target activity
    subscribes to ``taken``/``discarded`` when it is activated, so resolving a
    flow synchronously runs the target's inbound callback before ``take()`` or
    ``discard()`` returns.
    """

    def __init__(
        self,
        id: str,
        *,
        source_id: str,
        target_id: str,
        condition: Condition | None = None,
        is_default: bool = False,
    ) -> None:
        super().__init__()
        self.id = id
        self.source_id = source_id
        self.target_id = target_id
        self.condition = condition
        self.is_default = is_default
        self.status = FlowStatus.UNRESOLVED

    def __repr__(self) -> str:
        return f"SequenceFlow({self.id!r}, {self.source_id!r} -> {self.target_id!r}, {self.status.value})"

    @property
    def taken(self) -> bool:
        return self.status is FlowStatus.TAKEN

    @property
    def discarded(self) -> bool:
        return self.status is FlowStatus.DISCARDED

    @property
    def resolved(self) -> bool:
        return self.status is not FlowStatus.UNRESOLVED

    def reset(self) -> None:
        """Start a new resolution cycle for this flow."""

        self.status = FlowStatus.UNRESOLVED

    def evaluate(self, variables: Mapping[str, Any]) -> bool:
        if self.condition is None:
            return True
        try:
            return bool(self.condition(variables))
        except Exception as e:
            raise ConditionError(self.id, e) from e

    def take(self) -> bool:
        return self._resolve(FlowStatus.TAKEN, "taken")

    def discard(self) -> bool:
        return self._resolve(FlowStatus.DISCARDED, "discarded")

    def _resolve(self, status: FlowStatus, event: str) -> bool:
        if self.resolved:
            logger.warning(
                "Sequence flow already resolved in this cycle; ignoring",
                extra={
                    "flow_id": self.id,
                    "status": self.status.value,
                    "requested": status.value,
                },
            )
            return False

        self.status = status
        logger.debug(
            "Sequence flow %s",
            event,
            extra={"flow_id": self.id, "source_id": self.source_id, "target_id": self.target_id},
        )
        self.emit(event, self)
        return True
