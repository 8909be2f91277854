# config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Iterable, Optional


class Option(str, Enum):
    """
    Optional features. Each value doubles as the CLI flag name.

    The safe default run (Xcode CLT, Homebrew, CLI Brewfile) needs none of
    these.
    """
    CASKS = "with-casks"
    MAS = "with-mas"
    MACOS_DEFAULTS = "apply-macos-defaults"
    SHELL = "configure-shell"
    OH_MY_ZSH = "install-oh-my-zsh"
    GIT = "configure-git"
    GPG = "configure-gpg"
    SSH_KEY = "generate-ssh-key"
    DOTNET_CERTS = "trust-dotnet-dev-certs"
    DOCKER = "setup-docker"
    WEZTERM = "configure-wezterm"
    NVIM = "configure-nvim"
    NODE_TOOLS = "install-node-tools"
    PYTHON_TOOLS = "install-python-tools"
    MSSQL_TOOLS = "install-mssql-tools"
    VSCODE_EXTS = "install-vscode-exts"
    OPEN_LINKS = "open-links"
    SUMMARY = "write-summary"

    @property
    def flag(self) -> str:
        return f"--{self.value}"

    @property
    def param(self) -> str:
        """Name click gives the flag's parameter."""
        return self.value.replace("-", "_")


OPTION_HELP = {
    Option.CASKS: "Install Homebrew casks (GUI apps/fonts)",
    Option.MAS: "Install Mac App Store apps (requires sign-in)",
    Option.MACOS_DEFAULTS: "Apply macOS defaults (Finder/Dock/etc.)",
    Option.SHELL: "Configure zsh enhancements + aliases",
    Option.OH_MY_ZSH: "Install Oh My Zsh (unattended)",
    Option.GIT: "Apply global git configuration",
    Option.GPG: "Configure GPG pinentry settings",
    Option.SSH_KEY: "Generate ~/.ssh/id_ed25519 and ssh config block",
    Option.DOTNET_CERTS: "Trust .NET HTTPS dev certs",
    Option.DOCKER: "Start Docker Desktop + sanity check",
    Option.WEZTERM: "Write WezTerm config (backs up existing)",
    Option.NVIM: "Write minimal Neovim config (backs up existing)",
    Option.NODE_TOOLS: "Install Node LTS (nvm) + Bun/Deno tools",
    Option.PYTHON_TOOLS: "Install Python tooling via pipx",
    Option.MSSQL_TOOLS: "Install SQL Server CLI tools",
    Option.VSCODE_EXTS: "Install VS Code extensions",
    Option.OPEN_LINKS: "Open helpful URLs at the end",
    Option.SUMMARY: "Write ~/Desktop/setup-complete.md",
}

# Old flag names that still work.
OPTION_ALIASES = {
    "configure-ghostty": Option.WEZTERM,
}


@dataclass(frozen=True)
class SetupConfig:
    options: FrozenSet[Option] = field(default_factory=frozenset)
    home: Path = field(default_factory=Path.home)
    config_home: Optional[Path] = None
    command_timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if self.config_home is None:
            xdg = os.environ.get("XDG_CONFIG_HOME")
            object.__setattr__(self, "config_home", Path(xdg) if xdg else self.home / ".config")

    @classmethod
    def from_flags(
        cls,
        *,
        full: bool = False,
        selected: Iterable[Option] = (),
        home: Optional[Path] = None,
        config_home: Optional[Path] = None,
        command_timeout: Optional[float] = None,
    ) -> "SetupConfig":
        """`full` turns on every option; otherwise only `selected` ones."""
        options = frozenset(Option) if full else frozenset(selected)
        return cls(
            options=options,
            home=home if home is not None else Path.home(),
            config_home=config_home,
            command_timeout=command_timeout,
        )

    def enabled(self, option: Option) -> bool:
        return option in self.options

    # ---- well-known paths ----

    @property
    def zprofile(self) -> Path:
        return self.home / ".zprofile"

    @property
    def zshrc(self) -> Path:
        return self.home / ".zshrc"

    @property
    def brewfile(self) -> Path:
        return self.home / "Brewfile"

    @property
    def summary_file(self) -> Path:
        return self.home / "Desktop" / "setup-complete.md"
