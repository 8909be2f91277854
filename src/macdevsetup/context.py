# context.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .blocks import ConfigBlockStore
from .config import SetupConfig
from .env import EnvironmentContext
from .executor import Executor
from .runner import StepFailure
from .ui.console import Console, get_console

logger = logging.getLogger(__name__)


TOOL_HINTS = {
    "brew": "Re-run the setup so Homebrew is installed, or fix PATH.",
    "gpg": "Install gnupg (brew install gnupg).",
    "code": "Install VS Code and run 'Shell Command: Install code command in PATH'.",
    "dotnet": "Install the .NET SDK (re-run with --with-casks).",
    "docker": "Install Docker Desktop (re-run with --with-casks).",
    "mas": "Install mas (brew install mas) and sign into the App Store.",
    "pipx": "Install pipx (brew install pipx).",
    "ssh-keygen": "OpenSSH ships with macOS; check your PATH.",
}


@dataclass
class SetupContext:
    """Everything a provisioning step needs besides the environment."""
    config: SetupConfig
    executor: Executor
    store: ConfigBlockStore = field(default_factory=ConfigBlockStore)
    console: Console = field(default_factory=get_console)

    @property
    def home(self) -> Path:
        return self.config.home

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.console.print_warning(message)

    def info(self, message: str) -> None:
        logger.info(message)
        self.console.print_info(message)

    def has(self, tool: str, env: EnvironmentContext) -> bool:
        return self.executor.which(tool, env) is not None

    def require(self, tool: str, env: EnvironmentContext, step: str) -> str:
        """Path of *tool*, or StepFailure with an install hint."""
        found: Optional[str] = self.executor.which(tool, env)
        if found is None:
            raise StepFailure(
                step=step,
                reason=f"{tool} is not available",
                hint=TOOL_HINTS.get(tool, f"Install {tool} or fix PATH."),
            )
        return found
