"""bpmn-engine.

Executes process graphs of activities and conditionally taken sequence flows:
- parallel and inclusive gateways with exact-once join semantics
- discard cascades so joins complete even on untaken branches
- snapshot/resume of any activity mid-join or mid-fork
"""

__version__ = "0.1.0"

from bpmn_engine.engine.config import EngineSettings
from bpmn_engine.engine.definition import ProcessDefinitionModel
from bpmn_engine.engine.process import Process, ProcessStatus

__all__ = ["__version__", "EngineSettings", "Process", "ProcessDefinitionModel", "ProcessStatus"]
