"""CLI entrypoint for the process engine.

A run either completes in one go or stops at user tasks. In the latter case
the snapshot is persisted to ``ENGINE_STATE_PATH`` and a later ``signal``
command resumes it.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from bpmn_engine import __version__
from bpmn_engine.engine.config import EngineSettings
from bpmn_engine.engine.definition import ProcessDefinitionModel
from bpmn_engine.engine.flow.errors import EngineError
from bpmn_engine.engine.logging import configure_logging
from bpmn_engine.engine.process import Process, ProcessStatus
from bpmn_engine.engine.state_store import ProcessStateStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_USAGE = 2
EXIT_ENGINE_ERROR = 3
EXIT_PROCESS_FAILED = 4


def _parse_json_object(value: str | None, *, option: str) -> dict[str, Any]:
    if not value:
        return {}
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"{option} must be a JSON object: {e}") from e
    if not isinstance(parsed, dict):
        raise argparse.ArgumentTypeError(f"{option} must be a JSON object")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bpmn-engine",
        description="Execute process graphs with resumable gateway state",
    )
    parser.add_argument("--version", action="version", version=f"bpmn-engine {__version__}")
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Log every flow resolution and activity transition at DEBUG",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Start a new process instance")
    run.add_argument(
        "--definition",
        type=Path,
        required=True,
        help="Path to the JSON process definition",
    )
    run.add_argument(
        "--variables",
        default=None,
        help='Initial process variables as a JSON object, e.g. \'{"input": 51}\'',
    )

    signal = subparsers.add_parser("signal", help="Signal a waiting user task of the stored instance")
    signal.add_argument(
        "--definition",
        type=Path,
        required=True,
        help="Path to the JSON process definition the stored instance was started from",
    )
    signal.add_argument("--activity", required=True, help="Id of the waiting user task")
    signal.add_argument(
        "--output",
        default=None,
        help="Task output merged into the process variables, as a JSON object",
    )

    subparsers.add_parser("show-state", help="Print the stored process snapshot")

    return parser


def _report(process: Process, store: ProcessStateStore) -> int:
    if process.status is ProcessStatus.FAILED:
        store.clear()
        print(f"Process {process.id} failed: {process.error}", file=sys.stderr)
        return EXIT_PROCESS_FAILED

    if process.status is ProcessStatus.COMPLETED:
        store.clear()
        taken = [a.id for a in process.activities.values() if a.taken]
        print(f"Process {process.id} completed")
        print(f"Taken: {', '.join(taken) if taken else '-'}")
        return EXIT_OK

    store.save(process.get_state())
    waiting = [t.id for t in process.waiting_tasks]
    print(f"Process {process.id} {process.status.value}")
    if waiting:
        print(f"Waiting: {', '.join(waiting)}")
    print(f"State saved to: {store.path}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = EngineSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep this simple and user-friendly.
        print("Configuration error:", file=sys.stderr)
        print(str(e), file=sys.stderr)
        return EXIT_USAGE

    configure_logging(settings.log_level, trace_cascade=args.trace)
    store = ProcessStateStore(settings.state_path)

    try:
        if args.command == "show-state":
            state = store.load()
            if state is None:
                print("No stored process state", file=sys.stderr)
                return EXIT_USAGE
            print(json.dumps(state.to_json(), indent=2, ensure_ascii=False))
            return EXIT_OK

        try:
            definition = ProcessDefinitionModel.from_file(args.definition)
            if args.command == "run":
                variables = _parse_json_object(args.variables, option="--variables")
            else:
                output = _parse_json_object(args.output, option="--output")
        except (argparse.ArgumentTypeError, FileNotFoundError) as e:
            print(str(e), file=sys.stderr)
            return EXIT_USAGE

        if args.command == "run":
            process = Process(definition, variables=variables)
            process.run()
            return _report(process, store)

        if args.command == "signal":
            state = store.load()
            if state is None:
                print(f"No stored process state at {store.path}", file=sys.stderr)
                return EXIT_USAGE
            process = Process.resume(definition, state, strict=settings.strict_resume)
            if args.activity not in process.activities:
                print(f"Unknown activity: {args.activity}", file=sys.stderr)
                return EXIT_USAGE
            process.signal(args.activity, output or None)
            return _report(process, store)

        logger.error("Unknown command", extra={"command": args.command})
        return EXIT_USAGE

    except EngineError as e:
        logger.warning(str(e), extra={"error_type": type(e).__name__})
        print(str(e), file=sys.stderr)
        return EXIT_ENGINE_ERROR

    except Exception:
        logger.exception("Command failed")
        return EXIT_UNEXPECTED


if __name__ == "__main__":
    raise SystemExit(main())
