# executor.py
from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from .env import EnvironmentContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class CommandError(Exception):
    argv: list[str]
    exit_code: int
    stderr: str = ""

    def __str__(self) -> str:
        msg = f"Command failed (exit={self.exit_code}): {format_argv(self.argv)}"
        tail = self.stderr.strip().splitlines()[-1:] if self.stderr else []
        if tail:
            msg += f"\n{tail[0]}"
        return msg


@dataclass
class CommandTimeout(Exception):
    argv: list[str]
    timeout: float

    def __str__(self) -> str:
        return f"Command timed out after {self.timeout:g}s: {format_argv(self.argv)}"


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


class Executor(Protocol):
    """The only way steps talk to the outside world."""

    def execute(
        self,
        argv: Sequence[str],
        *,
        env: EnvironmentContext | None = None,
        input_text: str | None = None,
        check: bool = False,
        cwd: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        ...

    def which(self, name: str, env: EnvironmentContext | None = None) -> Optional[str]:
        ...


# ----------------------------------------------------------------------
# Real executor
# ----------------------------------------------------------------------

class SubprocessExecutor:
    """
    Runs commands with subprocess, logging each one.

    `timeout` applies per command; None waits as long as the command runs.
    """

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    def execute(
        self,
        argv: Sequence[str],
        *,
        env: EnvironmentContext | None = None,
        input_text: str | None = None,
        check: bool = False,
        cwd: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        """
        Run *argv* and wait for it.

        With `stream=True` the command writes straight to the terminal (for
        long installers); its output is then not captured or logged.
        """
        argv_list = list(argv)
        logger.info("CMD %s", format_argv(argv_list))

        try:
            proc = subprocess.run(
                argv_list,
                input=input_text,
                text=True,
                capture_output=not stream,
                cwd=cwd,
                env=env.as_environ() if env is not None else None,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandTimeout(argv=argv_list, timeout=float(self.timeout or 0)) from e
        except FileNotFoundError:
            logger.debug("Executable not found: %s", argv_list[0])
            result = CommandResult(argv=argv_list, returncode=127, stderr=f"{argv_list[0]}: command not found")
            if check:
                raise CommandError(argv=argv_list, exit_code=127, stderr=result.stderr)
            return result

        if proc.stdout:
            logger.debug("STDOUT %s", proc.stdout.strip())
        if proc.stderr:
            logger.debug("STDERR %s", proc.stderr.strip())

        if check and proc.returncode != 0:
            raise CommandError(argv=argv_list, exit_code=proc.returncode, stderr=proc.stderr or "")

        return CommandResult(
            argv=argv_list,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )

    def which(self, name: str, env: EnvironmentContext | None = None) -> Optional[str]:
        path = env.path_string() if env is not None else None
        return shutil.which(name, path=path)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def run_shell(
    executor: Executor,
    script: str,
    *,
    env: EnvironmentContext | None = None,
    check: bool = False,
    stream: bool = False,
) -> CommandResult:
    """Run a snippet through bash (for things like nvm that only exist as shell functions)."""
    return executor.execute(["/bin/bash", "-c", script], env=env, check=check, stream=stream)
