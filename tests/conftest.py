"""Test configuration and fixtures."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

import pytest

from bpmn_engine.engine.definition import ProcessDefinitionModel
from bpmn_engine.engine.flow.activity import Activity


def make_definition(
    process_id: str,
    activities: list[tuple[str, str]],
    flows: list[dict[str, Any]],
) -> ProcessDefinitionModel:
    """Build a definition from ``(id, type)`` pairs and flow dicts."""

    return ProcessDefinitionModel.model_validate(
        {
            "id": process_id,
            "activities": [{"id": a_id, "type": a_type} for a_id, a_type in activities],
            "flows": flows,
        }
    )


def flow(flow_id: str, source: str, target: str, **extra: Any) -> dict[str, Any]:
    return {"id": flow_id, "source": source, "target": target, **extra}


class EventRecorder:
    """Collects activity events in emission order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def watch(self, activity: Activity, *events: str) -> None:
        for event in events or ("start", "end", "leave"):
            activity.on(event, lambda a, _event=event: self.events.append((_event, a.id)))

    def count(self, event: str, activity_id: str | None = None) -> int:
        return sum(
            1 for e, a in self.events if e == event and (activity_id is None or a == activity_id)
        )


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """The CLI reconfigures the root logger; undo that after each test."""

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    engine_loggers = {
        name: logging.getLogger(name).level
        for name in (
            "bpmn_engine.engine.flow.sequence_flow",
            "bpmn_engine.engine.flow.activity",
            "bpmn_engine.engine.flow.gateways",
        )
    }
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    for name, lvl in engine_loggers.items():
        logging.getLogger(name).setLevel(lvl)


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def fork_join_definition() -> ProcessDefinitionModel:
    """theStart -> fork -(flow2, flow3)-> join -> end."""

    return make_definition(
        "theProcess",
        [
            ("theStart", "startEvent"),
            ("fork", "parallelGateway"),
            ("join", "parallelGateway"),
            ("end", "endEvent"),
        ],
        [
            flow("flow1", "theStart", "fork"),
            flow("flow2", "fork", "join"),
            flow("flow3", "fork", "join"),
            flow("flow4", "join", "end"),
        ],
    )


@pytest.fixture
def user_task_join_definition() -> ProcessDefinitionModel:
    """Two user tasks forked in parallel and joined before the end."""

    return make_definition(
        "theProcess",
        [
            ("theStart", "startEvent"),
            ("fork", "parallelGateway"),
            ("task1", "userTask"),
            ("task2", "userTask"),
            ("join", "parallelGateway"),
            ("end", "endEvent"),
        ],
        [
            flow("flow1", "theStart", "fork"),
            flow("flow2", "fork", "task1"),
            flow("flow3", "fork", "task2"),
            flow("flow4", "task1", "join"),
            flow("flow5", "task2", "join"),
            flow("flow6", "join", "end"),
        ],
    )
