from .blocks import ConfigBlockStore, MalformedBlockError
from .config import Option, SetupConfig
from .env import EnvironmentContext
from .model import RunReport, Step, StepResult, StepStatus
from .provision import run_setup
from .runner import StepOrchestrator, StepFailure

__all__ = [
    "ConfigBlockStore",
    "MalformedBlockError",
    "Option",
    "SetupConfig",
    "EnvironmentContext",
    "RunReport",
    "Step",
    "StepResult",
    "StepStatus",
    "run_setup",
    "StepOrchestrator",
    "StepFailure",
]
