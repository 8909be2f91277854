# step_workflows/runtimes.py
from __future__ import annotations

from .. import catalog
from ..config import Option
from ..context import SetupContext
from ..env import EnvironmentContext
from ..executor import run_shell
from ..runner import StepFailure

BUN_INSTALL_URL = "https://bun.sh/install"
VSCODE_DENO_URL = "https://deno.land/x/vscode_deno@0.9.0/main.ts"


# ---------------------------------------------------------------------
# Node.js (nvm) + Bun + Deno
# ---------------------------------------------------------------------

def _install_node_lts(setup: SetupContext, env: EnvironmentContext) -> EnvironmentContext:
    """nvm only exists as a shell function, so everything happens in one bash call."""
    prefix = env.brew_prefix or "/opt/homebrew"
    nvm_dir = setup.home / ".nvm"
    nvm_sh = f"{prefix}/opt/nvm/nvm.sh"
    script = " && ".join([
        f'export NVM_DIR="{nvm_dir}"',
        f'[ -s "{nvm_sh}" ]',
        f'. "{nvm_sh}"',
        "(nvm install --lts --latest-npm >/dev/null 2>&1 || nvm install --lts >/dev/null 2>&1)",
        "(nvm alias default 'lts/*' >/dev/null 2>&1 || true)",
        'dirname "$(nvm which default)"',
    ])
    result = run_shell(setup.executor, script, env=env)
    node_bin = result.stdout.strip().splitlines()[-1] if result.ok and result.stdout.strip() else ""
    if not node_bin:
        setup.warn("nvm not available in this shell; try restarting your terminal.")
        return env

    env = env.with_variable("NVM_DIR", str(nvm_dir)).prepend_path(node_bin)
    setup.info(f"Node.js available from {node_bin}")
    return env


def node_tools(setup: SetupContext, env: EnvironmentContext) -> EnvironmentContext:
    ex = setup.executor
    shell_managed = setup.config.enabled(Option.SHELL)

    (setup.home / ".nvm").mkdir(parents=True, exist_ok=True)
    if shell_managed:
        setup.store.upsert(setup.config.zshrc, "nvm", catalog.NVM_INIT)

    env = _install_node_lts(setup, env)

    # Corepack provides pnpm/yarn
    if setup.has("corepack", env):
        ex.execute(["corepack", "enable"], env=env)
        ex.execute(["corepack", "prepare", "pnpm@latest", "--activate"], env=env)

    # Bun
    if not setup.has("bun", env):
        if not run_shell(ex, f"curl -fsSL {BUN_INSTALL_URL} | bash", env=env).ok:
            setup.warn("Bun install failed")
    bun_bin = setup.home / ".bun" / "bin"
    if bun_bin.is_dir():
        env = env.prepend_path(str(bun_bin))
        if shell_managed:
            setup.store.upsert(setup.config.zshrc, "bun-path", catalog.path_guard("$HOME/.bun/bin"))
    if setup.has("bun", env):
        ex.execute(["bun", "install", "-g", *catalog.BUN_GLOBALS], env=env)
    else:
        setup.warn("Bun not available on PATH")

    # Deno (installed by the Brewfile)
    if setup.has("deno", env):
        ex.execute(
            ["deno", "install", "--allow-read", "--allow-write", "--allow-net", "--allow-env",
             "--no-check", "-n", "vscode-deno", VSCODE_DENO_URL],
            env=env,
        )

    if setup.has("npm", env):
        if not ex.execute(["npm", "install", "-g", *catalog.NPM_GLOBALS], env=env).ok:
            setup.warn("Some npm packages may have failed")
    else:
        setup.warn("npm not available; skipping global npm packages")

    return env


# ---------------------------------------------------------------------
# Python (pipx)
# ---------------------------------------------------------------------

def python_tools(setup: SetupContext, env: EnvironmentContext) -> EnvironmentContext:
    if setup.config.enabled(Option.SHELL):
        setup.store.upsert(setup.config.zshrc, "python313-path", catalog.PYTHON313_PATH)
        setup.store.upsert(setup.config.zshrc, "pipx-path", catalog.path_guard("$HOME/.local/bin"))

    prefix = env.brew_prefix or "/opt/homebrew"
    env = env.prepend_path(f"{prefix}/opt/python@3.13/libexec/bin")
    local_bin = setup.home / ".local" / "bin"
    if local_bin.is_dir():
        env = env.prepend_path(str(local_bin))

    setup.require("pipx", env, "python-tools")
    failed = [
        tool for tool in catalog.PIPX_TOOLS
        if not setup.executor.execute(["pipx", "install", "--force", tool], env=env).ok
    ]
    if failed:
        raise StepFailure(step="python-tools", reason=f"pipx failed for: {', '.join(failed)}")
    return env
