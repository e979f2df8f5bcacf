from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .activity import Activity, ActivityKind
from .errors import ActivityNotWaitingError
from .state import ActivityState

logger = logging.getLogger(__name__)


class StartEvent(Activity):
    kind = ActivityKind.START_EVENT


class EndEvent(Activity):
    kind = ActivityKind.END_EVENT


class Task(Activity):
    """Pass-through task: takes every outbound flow as soon as it runs."""

    kind = ActivityKind.TASK


class UserTask(Activity):
    """Suspends after entering until :meth:`signal` is called.

    Emits ``wait`` (carrying the task) when it starts waiting. The payload
    passed to :meth:`signal` is merged into the shared variables before the
    outbound flows are taken.
    """

    kind = ActivityKind.USER_TASK

    def __init__(self, id: str, **kwargs: Any) -> None:
        super().__init__(id, **kwargs)
        self.waiting = False

    def execute(self) -> None:
        self.waiting = True
        logger.debug("User task waiting for signal", extra={"activity_id": self.id})
        self.emit("wait", self)

    def signal(self, output: Mapping[str, Any] | None = None) -> None:
        if not self.waiting:
            raise ActivityNotWaitingError(self.id)

        self.waiting = False
        if output:
            self.variables.update(output)
        logger.debug("User task signalled", extra={"activity_id": self.id})
        self._take_outbound()

    def get_state(self) -> ActivityState:
        state = super().get_state()
        if self.waiting:
            state.waiting = True
        return state

    def restore(self, state: ActivityState | dict[str, Any]) -> ActivityState:
        restored = super().restore(state)
        self.waiting = bool(restored.waiting) and self.entered
        return restored

    def proceed(self) -> None:
        if self.waiting:
            return
        if self.entered and self._pending_outbound == [f.id for f in self.outbound]:
            # Stopped on ``start``, before the task began waiting.
            self.execute()
            return
        super().proceed()
