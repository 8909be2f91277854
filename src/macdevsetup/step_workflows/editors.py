# step_workflows/editors.py
from __future__ import annotations

from .. import catalog
from ..context import SetupContext
from ..env import EnvironmentContext
from ..runner import StepFailure


def wezterm_config(setup: SetupContext, env: EnvironmentContext) -> None:
    target = setup.config.config_home / "wezterm" / "wezterm.lua"
    setup.store.rewrite(target, catalog.WEZTERM_CONFIG)


def nvim_config(setup: SetupContext, env: EnvironmentContext) -> None:
    target = setup.config.config_home / "nvim" / "init.lua"
    setup.store.rewrite(target, catalog.NVIM_CONFIG)
    # undofile directory referenced by the config
    (setup.home / ".vim" / "undodir").mkdir(parents=True, exist_ok=True)
    setup.info("Neovim configured with basic settings")


def vscode_extensions(setup: SetupContext, env: EnvironmentContext) -> None:
    setup.require("code", env, "vscode-extensions")
    failed = [
        ext for ext in catalog.VSCODE_EXTENSIONS
        if not setup.executor.execute(["code", "--install-extension", ext], env=env).ok
    ]
    if failed:
        raise StepFailure(
            step="vscode-extensions",
            reason=f"{len(failed)} extension(s) failed: {', '.join(failed)}",
        )
