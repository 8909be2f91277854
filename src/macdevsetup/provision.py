# provision.py
from __future__ import annotations

import logging
from functools import partial
from typing import Callable, List, NamedTuple, Optional, Sequence

from .config import Option, SetupConfig
from .context import SetupContext
from .env import EnvironmentContext
from .executor import Executor, SubprocessExecutor
from .model import RunReport, Step
from .preflight import find_brew_prefix, run_preflight
from .runner import StepOrchestrator, interrupt_guard
from .step_workflows import editors, packages, runtimes, security, shell, system
from .ui.console import Console, get_console

logger = logging.getLogger(__name__)


class StepDef(NamedTuple):
    id: str
    func: Callable
    option: Optional[Option]  # None = always runs
    description: str
    depends_on: Sequence[str] = ()
    after: Sequence[str] = ()


# Every step writing .zshrc runs after Oh My Zsh, whose installer replaces the file.
_ZSHRC = ("oh-my-zsh",)

STEPS: List[StepDef] = [
    StepDef("brew-shellenv", packages.brew_shellenv, None, "Load Homebrew in login shells"),
    StepDef("brewfile", packages.write_brewfile, None, "Regenerate ~/Brewfile"),
    StepDef("brew-bundle", packages.brew_bundle, None, "Install packages from Brewfile", ("brewfile",)),
    StepDef("git-flow", packages.git_flow, None, "Ensure git-flow is installed", ("brew-bundle",)),
    StepDef("mssql-tools", packages.mssql_tools, Option.MSSQL_TOOLS,
            "Install SQL Server CLI tools", ("brew-bundle",)),
    StepDef("oh-my-zsh", shell.oh_my_zsh, Option.OH_MY_ZSH, "Install Oh My Zsh"),
    StepDef("dotnet-tools-path", shell.dotnet_tools_path, Option.SHELL,
            "Put .NET global tools on PATH", after=_ZSHRC),
    StepDef("shell-enhancements", shell.shell_enhancements, Option.SHELL,
            "Configure starship, zsh plugins, zoxide, direnv, fzf", ("brew-bundle",), _ZSHRC),
    StepDef("node-tools", runtimes.node_tools, Option.NODE_TOOLS,
            "Install Node LTS (nvm), Bun, Deno and npm globals", ("brew-bundle",),
            _ZSHRC + ("shell-enhancements",)),
    StepDef("python-tools", runtimes.python_tools, Option.PYTHON_TOOLS,
            "Install Python tooling via pipx", ("brew-bundle",), _ZSHRC),
    StepDef("git-config", security.git_config, Option.GIT, "Apply global git configuration", ("brew-bundle",)),
    StepDef("gpg-pinentry", security.gpg_pinentry, Option.GPG, "Configure GPG pinentry (GUI)", ("brew-bundle",)),
    StepDef("ssh-key", security.ssh_key, Option.SSH_KEY, "Generate SSH key and keychain config"),
    StepDef("dotnet-dev-certs", system.dotnet_dev_certs, Option.DOTNET_CERTS, "Trust .NET development certificates"),
    StepDef("docker", system.docker, Option.DOCKER, "Start Docker Desktop + sanity check", after=("brew-bundle",)),
    StepDef("wezterm-config", editors.wezterm_config, Option.WEZTERM, "Write WezTerm config"),
    StepDef("macos-defaults", system.macos_defaults, Option.MACOS_DEFAULTS, "Apply macOS preferences"),
    StepDef("mas-apps", packages.mas_apps, Option.MAS, "Install Mac App Store apps", ("brew-bundle",)),
    StepDef("directories", system.directories, None, "Create development directories"),
    StepDef("shell-aliases", shell.shell_aliases, Option.SHELL, "Install shell aliases", after=_ZSHRC),
    StepDef("nvim-config", editors.nvim_config, Option.NVIM, "Write Neovim config"),
    StepDef("vscode-extensions", editors.vscode_extensions, Option.VSCODE_EXTS,
            "Install VS Code extensions", after=("brew-bundle",)),
    StepDef("open-links", system.open_links, Option.OPEN_LINKS, "Open helpful resources"),
    StepDef("summary", system.write_summary, Option.SUMMARY, "Write setup summary"),
]


def build_steps(setup: SetupContext, defs: Sequence[StepDef] = STEPS) -> List[Step]:
    steps: List[Step] = []
    for d in defs:
        enabled = d.option is None or setup.config.enabled(d.option)
        description = d.description if d.option is None else f"{d.description} ({d.option.flag})"
        steps.append(
            Step(
                id=d.id,
                action=partial(d.func, setup),
                enabled=enabled,
                depends_on=list(d.depends_on),
                after=list(d.after),
                description=description,
            )
        )
    return steps


def build_orchestrator(setup: SetupContext) -> StepOrchestrator:
    orchestrator = StepOrchestrator(console=setup.console)
    orchestrator.register_all(build_steps(setup))
    return orchestrator


def next_steps(config: SetupConfig) -> List[str]:
    lines = ["Restart your terminal or run: exec zsh"]
    if config.enabled(Option.SSH_KEY):
        lines.append("Add SSH key to GitHub: pbcopy < ~/.ssh/id_ed25519.pub")
    else:
        lines.append("(Optional) Generate SSH key: re-run with --generate-ssh-key")
    if config.enabled(Option.GIT):
        lines.append("Configure Git identity (name/email)")
    else:
        lines.append("(Optional) Configure Git defaults: re-run with --configure-git")
    if config.enabled(Option.SUMMARY):
        lines.append(f"Check {config.summary_file} for a cheat sheet")
    return lines


def run_setup(
    config: SetupConfig,
    *,
    executor: Optional[Executor] = None,
    console: Optional[Console] = None,
    env: Optional[EnvironmentContext] = None,
    system_name: Optional[str] = None,
    locate: Callable[[], Optional[str]] = find_brew_prefix,
    print_plan: bool = True,
) -> RunReport:
    """
    Preflight, then every registered step.

    Raises PreconditionError before any step runs, and CyclicDependencyError /
    UnknownStepError if the registry itself is broken.
    """
    console = console or get_console()
    executor = executor or SubprocessExecutor(timeout=config.command_timeout)
    setup = SetupContext(config=config, executor=executor, console=console)

    console.print_run_started(home=str(config.home), options=[o.value for o in config.options])

    orchestrator = build_orchestrator(setup)
    plan = orchestrator.plan()
    if print_plan:
        console.print_plan(plan)

    env = run_preflight(
        executor,
        env if env is not None else EnvironmentContext.from_os(),
        system=system_name,
        locate=locate,
    )
    console.print_success("Homebrew ready")

    with interrupt_guard(orchestrator):
        report = orchestrator.run(env)

    logger.info("Run finished: %s", report.counts())
    console.print_results(report)
    console.print_next_steps(next_steps(config))
    return report
