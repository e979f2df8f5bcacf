"""Serializable snapshots of activity and process state.

Pending-set fields are optional: an absent field means that phase is already
resolved, not that it should be started from scratch.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Snapshot(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DeferredResolution(_Snapshot):
    """An inbound resolution queued while the activity was resolving its outbound flows."""

    id: str
    discarded: bool = False


class ActivityState(_Snapshot):
    id: str
    type: str
    entered: bool = False
    taken: bool = False

    pending_inbound: list[str] | None = None
    discarded_inbound: list[str] | None = None
    pending_outbound: list[str] | None = None
    deferred_inbound: list[DeferredResolution] | None = None

    # Only reported by activities that suspend on an external signal.
    waiting: bool | None = None


class ProcessState(_Snapshot):
    id: str
    status: str
    variables: dict[str, Any] = Field(default_factory=dict)
    children: list[ActivityState] = Field(default_factory=list)

    def child(self, activity_id: str) -> ActivityState | None:
        for state in self.children:
            if state.id == activity_id:
                return state
        return None
