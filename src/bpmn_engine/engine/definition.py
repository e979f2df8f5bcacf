"""Process definition documents.

A definition is a JSON document listing activities and the sequence flows
between them. Conditions are a single comparison against a process variable;
callers that need anything richer pass predicates keyed by flow id to
:meth:`ProcessDefinitionModel.build`.
"""

from __future__ import annotations

import json
import operator
from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from bpmn_engine.engine.flow.activity import Activity, ActivityKind
from bpmn_engine.engine.flow.errors import DefinitionError
from bpmn_engine.engine.flow.gateways import InclusiveGateway, ParallelGateway
from bpmn_engine.engine.flow.sequence_flow import Condition, SequenceFlow
from bpmn_engine.engine.flow.tasks import EndEvent, StartEvent, Task, UserTask

ACTIVITY_TYPES: dict[ActivityKind, type[Activity]] = {
    ActivityKind.START_EVENT: StartEvent,
    ActivityKind.END_EVENT: EndEvent,
    ActivityKind.TASK: Task,
    ActivityKind.USER_TASK: UserTask,
    ActivityKind.PARALLEL_GATEWAY: ParallelGateway,
    ActivityKind.INCLUSIVE_GATEWAY: InclusiveGateway,
}

ComparisonOperator = Literal["<", "<=", "==", "!=", ">=", ">"]

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
    ">=": operator.ge,
    ">": operator.gt,
}


class ConditionModel(BaseModel):
    variable: str
    operator: ComparisonOperator
    value: Any = None

    def compile(self) -> Condition:
        compare = _OPERATORS[self.operator]
        return _Comparison(variable=self.variable, compare=compare, value=self.value)


@dataclass(frozen=True, slots=True)
class _Comparison:
    variable: str
    compare: Callable[[Any, Any], bool]
    value: Any

    def __call__(self, variables: Mapping[str, Any]) -> bool:
        if self.variable not in variables:
            return False
        try:
            return bool(self.compare(variables[self.variable], self.value))
        except TypeError:
            return False


class ActivityModel(BaseModel):
    id: str
    type: ActivityKind
    name: str = ""


class FlowModel(BaseModel):
    id: str
    source: str
    target: str
    condition: ConditionModel | None = None
    default: bool = False


@dataclass(frozen=True, slots=True)
class ProcessGraph:
    """Arena of activities and flows, both addressed by id."""

    activities: dict[str, Activity]
    flows: dict[str, SequenceFlow]


class ProcessDefinitionModel(BaseModel):
    id: str
    name: str = ""
    activities: list[ActivityModel] = Field(default_factory=list)
    flows: list[FlowModel] = Field(default_factory=list)

    @classmethod
    def from_file(cls, path: Path) -> ProcessDefinitionModel:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise DefinitionError(f"Definition {path} is not valid JSON: {e}") from e
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise DefinitionError(f"Definition {path} is invalid: {e}") from e

    def build(
        self,
        *,
        variables: MutableMapping[str, Any] | None = None,
        conditions: Mapping[str, Condition] | None = None,
    ) -> ProcessGraph:
        """Instantiate a fresh activity/flow graph.

        ``conditions`` override the document's conditions for the given flow ids.
        Every call returns new objects, so a graph built from the same definition
        can be used to resume a snapshot of another instance.
        """

        scope: MutableMapping[str, Any] = variables if variables is not None else {}
        overrides = dict(conditions or {})

        activity_ids = [a.id for a in self.activities]
        _reject_duplicates("activity", activity_ids)
        _reject_duplicates("flow", [f.id for f in self.flows])
        unknown_overrides = set(overrides) - {f.id for f in self.flows}
        if unknown_overrides:
            raise DefinitionError(f"Conditions given for unknown flows: {sorted(unknown_overrides)}")

        flows: dict[str, SequenceFlow] = {}
        for model in self.flows:
            for ref in (model.source, model.target):
                if ref not in activity_ids:
                    raise DefinitionError(f"Flow {model.id!r} references unknown activity {ref!r}")
            condition = overrides.get(model.id)
            if condition is None and model.condition is not None:
                condition = model.condition.compile()
            flows[model.id] = SequenceFlow(
                model.id,
                source_id=model.source,
                target_id=model.target,
                condition=condition,
                is_default=model.default,
            )

        activities: dict[str, Activity] = {}
        for model in self.activities:
            cls = ACTIVITY_TYPES[model.type]
            activities[model.id] = cls(
                model.id,
                inbound=[f for f in flows.values() if f.target_id == model.id],
                outbound=[f for f in flows.values() if f.source_id == model.id],
                variables=scope,
            )

        return ProcessGraph(activities=activities, flows=flows)


def _reject_duplicates(kind: str, ids: list[str]) -> None:
    seen: set[str] = set()
    for item in ids:
        if item in seen:
            raise DefinitionError(f"Duplicate {kind} id {item!r}")
        seen.add(item)
