"""Console script entrypoint.

The CLI itself is implemented in `bpmn_engine.engine.main`.
"""

from __future__ import annotations

from bpmn_engine.engine.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
