#!/usr/bin/env python3
"""Programmatic stop/resume example.

This demonstrates using the engine components directly:

* load a definition document
* run it until both user tasks wait, signal one of them
* snapshot the instance when the join starts, stop it
* resume the snapshot on a fresh graph and finish the run
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Sequence

from bpmn_engine.engine.config import EngineSettings
from bpmn_engine.engine.definition import ProcessDefinitionModel
from bpmn_engine.engine.flow.events import EventEmitter
from bpmn_engine.engine.flow.state import ProcessState
from bpmn_engine.engine.logging import configure_logging
from bpmn_engine.engine.process import Process


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stop a process at its join and resume it.")
    parser.add_argument(
        "--definition",
        type=Path,
        default=Path(__file__).with_name("review_fork.json"),
        help="Definition with user tasks task1/task2 feeding a join",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = EngineSettings()
    configure_logging(settings.log_level)

    definition = ProcessDefinitionModel.from_file(args.definition)

    snapshot: list[ProcessState] = []
    listener = EventEmitter()
    process = Process(definition, listener=listener)

    def _on_join_start(_activity: object, instance: Process) -> None:
        snapshot.append(instance.get_state())
        instance.stop()

    listener.once("start-join", _on_join_start)
    process.run()
    process.signal("task1", {"approved": True})

    print(json.dumps(snapshot[0].to_json(), indent=2))

    resumed = Process.resume(definition, snapshot[0])
    resumed.signal("task2")
    print(f"Resumed instance finished with status: {resumed.status.value}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
