# step_workflows/shell.py
from __future__ import annotations

from .. import catalog
from ..context import SetupContext
from ..env import EnvironmentContext
from ..executor import run_shell

OH_MY_ZSH_INSTALL_URL = "https://raw.github.com/ohmyzsh/ohmyzsh/master/tools/install.sh"


def dotnet_tools_path(setup: SetupContext, env: EnvironmentContext) -> None:
    """.NET global tools on PATH for login (.zprofile) and interactive (.zshrc) shells."""
    block = catalog.path_guard("$HOME/.dotnet/tools")
    setup.store.upsert(setup.config.zprofile, "dotnet-tools", block)
    setup.store.upsert(setup.config.zshrc, "dotnet-tools", block)


def oh_my_zsh(setup: SetupContext, env: EnvironmentContext) -> None:
    if (setup.home / ".oh-my-zsh").is_dir():
        setup.info("Oh My Zsh already installed")
        return
    run_shell(
        setup.executor,
        f'sh -c "$(curl -fsSL {OH_MY_ZSH_INSTALL_URL})" "" --unattended',
        env=env,
        check=True,
        stream=True,
    )


def shell_enhancements(setup: SetupContext, env: EnvironmentContext) -> None:
    """Starship prompt, zsh plugins, zoxide/direnv hooks and fzf key bindings."""
    zshrc = setup.config.zshrc
    store = setup.store
    prefix = env.brew_prefix or "/opt/homebrew"

    store.upsert(zshrc, "starship", ['eval "$(starship init zsh)"'])
    store.upsert(zshrc, "zsh-plugins", catalog.zsh_plugins(prefix))

    if setup.has("zoxide", env):
        store.upsert(zshrc, "zoxide", ['eval "$(zoxide init zsh)"'])
    if setup.has("direnv", env):
        store.upsert(zshrc, "direnv", ['eval "$(direnv hook zsh)"'])

    result = setup.executor.execute([f"{prefix}/opt/fzf/install", "--all", "--no-bash", "--no-fish"], env=env)
    if not result.ok:
        setup.warn("fzf key bindings not installed")


def shell_aliases(setup: SetupContext, env: EnvironmentContext) -> None:
    setup.store.upsert(setup.config.zshrc, "aliases", catalog.ALIASES)
