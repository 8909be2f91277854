# step_workflows/packages.py
from __future__ import annotations

from pathlib import Path

from .. import catalog
from ..config import Option
from ..context import SetupContext
from ..env import EnvironmentContext
from ..runner import StepFailure


# ---------------------------------------------------------------------
# Homebrew
# ---------------------------------------------------------------------

def brew_shellenv(setup: SetupContext, env: EnvironmentContext) -> None:
    """Login shells pick up Homebrew via .zprofile."""
    setup.store.upsert(setup.config.zprofile, "brew-shellenv", catalog.BREW_SHELLENV)


def write_brewfile(setup: SetupContext, env: EnvironmentContext) -> None:
    with_casks = setup.config.enabled(Option.CASKS)
    if not with_casks:
        setup.warn("Skipping Homebrew casks (GUI apps/fonts). Re-run with --with-casks to install them.")
    setup.store.rewrite(setup.config.brewfile, catalog.render_brewfile(with_casks))


def brew_bundle(setup: SetupContext, env: EnvironmentContext) -> None:
    setup.require("brew", env, "brew-bundle")
    setup.executor.execute(["brew", "update"], env=env, check=True)
    result = setup.executor.execute(["brew", "bundle", f"--file={setup.config.brewfile}"], env=env, stream=True)
    if not result.ok:
        # brew bundle exits non-zero when any single formula fails; the rest is installed.
        setup.warn("Some packages may have failed to install")


def git_flow(setup: SetupContext, env: EnvironmentContext) -> None:
    for formula in ("git-flow", "git-flow-avh"):
        if setup.executor.execute(["brew", "install", formula], env=env).ok:
            return
    raise StepFailure(step="git-flow", reason="git-flow install failed", hint="Try: brew install git-flow-avh")


def mssql_tools(setup: SetupContext, env: EnvironmentContext) -> None:
    ex = setup.executor
    if not setup.has("sqlcmd", env):
        ex.execute(
            ["brew", "tap", "microsoft/mssql-release", "https://github.com/microsoft/homebrew-mssql-release"],
            env=env,
        )
        result = ex.execute(
            ["brew", "install", "msodbcsql18", "mssql-tools18"],
            env=env.with_variable("ACCEPT_EULA", "Y"),
        )
        if not result.ok:
            setup.warn("mssql tools install may have partially failed")

    prefix = env.brew_prefix or "/opt/homebrew"
    tools_bin = f"{prefix}/opt/mssql-tools18/bin"
    if not Path(tools_bin).is_dir():
        setup.warn(f"{tools_bin} not found; PATH block not written")
        return
    setup.store.upsert(setup.config.zprofile, "mssql-path", [f'export PATH="{tools_bin}:$PATH"'])


def mas_apps(setup: SetupContext, env: EnvironmentContext) -> None:
    ex = setup.executor
    if not setup.has("mas", env) or not ex.execute(["mas", "account"], env=env).ok:
        raise StepFailure(
            step="mas-apps",
            reason="Not signed into Mac App Store (or mas missing)",
            hint="Run `mas signin` or open the App Store, then re-run with --with-mas.",
        )
    failed = [name for app_id, name in catalog.MAS_APPS if not ex.execute(["mas", "install", app_id], env=env).ok]
    if failed:
        raise StepFailure(step="mas-apps", reason=f"Failed to install: {', '.join(failed)}")
