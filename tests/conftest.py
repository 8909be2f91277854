# conftest.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from macdevsetup.config import Option, SetupConfig
from macdevsetup.context import SetupContext
from macdevsetup.env import EnvironmentContext
from macdevsetup.executor import CommandError, CommandResult
from macdevsetup.ui.console import Console


def _matches(argv: List[str], prefix: Sequence[str]) -> bool:
    return argv[: len(prefix)] == list(prefix)


class FakeExecutor:
    """
    Records every command instead of running it.

    `fail` holds argv prefixes that exit 1, `responses` maps argv prefixes to
    stdout, and `tools` is what `which` can find.
    """

    def __init__(
        self,
        tools: Sequence[str] = (),
        fail: Sequence[Tuple[str, ...]] = (),
        responses: Optional[Dict[Tuple[str, ...], str]] = None,
    ):
        self.tools = set(tools)
        self.fail = list(fail)
        self.responses = dict(responses or {})
        self.calls: List[List[str]] = []
        self.envs: List[Optional[EnvironmentContext]] = []
        self.streamed: List[List[str]] = []

    def execute(self, argv, *, env=None, input_text=None, check=False, cwd=None, stream=False):
        argv = list(argv)
        self.calls.append(argv)
        if stream:
            self.streamed.append(argv)
        self.envs.append(env)
        code = 1 if any(_matches(argv, p) for p in self.fail) else 0
        stdout = next((out for p, out in self.responses.items() if _matches(argv, p)), "")
        if check and code:
            raise CommandError(argv=argv, exit_code=code, stderr="boom")
        return CommandResult(argv=argv, returncode=code, stdout=stdout)

    def which(self, name, env=None):
        return f"/fake/bin/{name}" if name in self.tools else None

    def ran(self, *prefix: str) -> bool:
        return any(_matches(c, prefix) for c in self.calls)


@pytest.fixture
def home(tmp_path: Path) -> Path:
    h = tmp_path / "home"
    h.mkdir()
    return h


@pytest.fixture
def console() -> Console:
    return Console()


@pytest.fixture
def env() -> EnvironmentContext:
    return EnvironmentContext(variables={"HOME": "/nowhere"}, path=("/usr/bin", "/bin"))


@pytest.fixture
def make_setup(home: Path, console: Console):
    """Build a SetupContext rooted at the temp home with the given options."""

    def _make(*options: Option, executor: Optional[FakeExecutor] = None) -> SetupContext:
        config = SetupConfig.from_flags(
            selected=options,
            home=home,
            config_home=home / ".config",
        )
        return SetupContext(config=config, executor=executor or FakeExecutor(), console=console)

    return _make
