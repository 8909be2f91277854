# preflight.py
# Checks that must pass before any step is scheduled.
from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Callable, Optional, Sequence

from .env import EnvironmentContext
from .executor import Executor, run_shell
from .runner import PreconditionError

logger = logging.getLogger(__name__)

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
HOMEBREW_PREFIXES = ("/opt/homebrew", "/usr/local")


def check_platform(system: Optional[str] = None) -> None:
    system = system if system is not None else platform.system()
    if system != "Darwin":
        raise PreconditionError(f"This setup is for macOS only (detected {system or 'unknown'})")


def ensure_xcode_clt(executor: Executor) -> None:
    """
    Xcode Command Line Tools must be present.

    When missing, the GUI installer is triggered and the run stops with
    exit code 0: the user accepts the dialog and runs the setup again.
    """
    if executor.execute(["xcode-select", "-p"]).ok:
        logger.info("Xcode Command Line Tools installed")
        return

    executor.execute(["xcode-select", "--install"])
    raise PreconditionError(
        "Installing Xcode Command Line Tools",
        exit_code=0,
        hint="If a dialog appeared, accept it and re-run this setup after installation completes.",
    )


def find_brew_prefix(
    prefixes: Sequence[str] = HOMEBREW_PREFIXES,
    exists: Callable[[Path], bool] = Path.is_file,
) -> Optional[str]:
    """Apple Silicon installs to /opt/homebrew, Intel to /usr/local."""
    for prefix in prefixes:
        if exists(Path(prefix) / "bin" / "brew"):
            return prefix
    return None


def ensure_homebrew(
    executor: Executor,
    env: EnvironmentContext,
    *,
    locate: Callable[[], Optional[str]] = find_brew_prefix,
) -> EnvironmentContext:
    """Install Homebrew if needed and return *env* with its shellenv applied."""
    if executor.which("brew", env) is None:
        logger.info("Installing Homebrew...")
        result = run_shell(
            executor,
            f'NONINTERACTIVE=1 /bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_URL})"',
            env=env,
            stream=True,
        )
        if not result.ok:
            raise PreconditionError(
                f"Homebrew installation failed (exit={result.returncode})",
                hint="Check your network connection and install Homebrew manually from https://brew.sh",
            )

    prefix = locate()
    if prefix is None:
        raise PreconditionError("Homebrew installation not found")

    logger.info("Homebrew ready at %s", prefix)
    return env.with_homebrew(prefix)


def run_preflight(
    executor: Executor,
    env: EnvironmentContext,
    *,
    system: Optional[str] = None,
    locate: Callable[[], Optional[str]] = find_brew_prefix,
) -> EnvironmentContext:
    check_platform(system)
    ensure_xcode_clt(executor)
    return ensure_homebrew(executor, env, locate=locate)
