from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from bpmn_engine.engine.flow.state import ProcessState

logger = logging.getLogger(__name__)


class ProcessStateStore:
    """Persist a suspended process snapshot explicitly.

    This makes long-running processes restartable and inspectable.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ProcessState | None:
        if not self._path.exists():
            return None

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(
                "Process state file is not valid JSON; treating as empty",
                extra={"path": str(self._path)},
            )
            return None

        if not isinstance(raw, dict):
            return None

        try:
            return ProcessState.model_validate(raw)
        except ValidationError:
            logger.warning(
                "Process state file does not hold a process snapshot; treating as empty",
                extra={"path": str(self._path)},
            )
            return None

    def save(self, state: ProcessState) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(state.to_json(), indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        logger.debug("Process state saved", extra={"path": str(self._path), "process_id": state.id})

    def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()
            logger.debug("Process state cleared", extra={"path": str(self._path)})
