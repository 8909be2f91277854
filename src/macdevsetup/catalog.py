# catalog.py
# What gets installed and written. Data only; the steps decide when.
from __future__ import annotations

from typing import List, Sequence, Tuple

# (kind, name, comment) - kind is "brew", "cask" or "tap"
Entry = Tuple[str, str, str]
Section = Tuple[str, str, Sequence[Entry]]


def _brews(*items: str | Tuple[str, str]) -> List[Entry]:
    out: List[Entry] = []
    for item in items:
        name, comment = (item, "") if isinstance(item, str) else item
        out.append(("brew", name, comment))
    return out


def _casks(*items: str | Tuple[str, str]) -> List[Entry]:
    out: List[Entry] = []
    for item in items:
        name, comment = (item, "") if isinstance(item, str) else item
        out.append(("cask", name, comment))
    return out


# ---------------------------------------------------------------------
# Brewfile
# ---------------------------------------------------------------------

CLI_SECTIONS: List[Section] = [
    ("Essential CLI Tools", "", _brews(
        "git",
        ("git-flow", "Git Flow (AVH edition via alias)"),
        ("gh", "GitHub CLI"),
        ("mas", "Mac App Store CLI"),
        "wget", "curl", "tree", "htop",
        ("ncdu", "disk usage analyzer"),
    )),
    ("Modern CLI Replacements", "Faster, ergonomic drop-in replacements for common UNIX tools.", _brews(
        ("fzf", "fuzzy finder"),
        ("ripgrep", "better grep (rg)"),
        ("fd", "better find"),
        ("bat", "better cat with syntax highlighting"),
        ("eza", "better ls"),
        ("zoxide", "better cd"),
        ("tldr", "simplified man pages"),
        ("jq", "JSON processor"),
        ("yq", "YAML processor"),
    )),
    ("Development Languages", "Pin sane baselines for polyglot projects (Python, Node LTS, Go, Rust).", _brews(
        "python@3.13",
        ("nvm", "Node Version Manager (installs latest LTS below)"),
        "go", "rust",
    )),
    ("Modern JavaScript Runtimes", "Deno as an alternative JS/TS runtime. Bun is installed via bun.sh (optional).", _brews(
        ("deno", "Secure JavaScript/TypeScript runtime"),
    )),
    ("Package Managers", "pipx isolates Python apps (ruff, httpie) from system/site-packages.", _brews(
        ("pipx", "Python app installer"),
        ("poetry", "Python dependency management"),
    )),
    ("Shell Enhancements", "Prompt, zsh plugins; configured later via idempotent blocks in .zshrc.", _brews(
        ("starship", "cross-shell prompt"),
        "zsh-autosuggestions",
        "zsh-syntax-highlighting",
    )),
    ("Development Tools", "Cloud CLIs, IaC, editor helpers, shell quality tools.", _brews(
        "kubernetes-cli", "helm", "terraform", "awscli", "azure-cli",
        ("flyctl", "Fly.io CLI"),
        ("shellcheck", "shell lint"),
        ("shfmt", "shell formatter"),
        ("direnv", "per-project envs"),
        ("sops", "secrets with age/GPG"),
        ("k9s", "k8s TUI"),
        ("neovim", "modern terminal-based editor"),
        ("docker-compose", "Docker Compose V2"),
    )),
    ("Database Tools", "Local services and shells; SQL Server tools are added later (optional).", _brews(
        "postgresql@16", "redis", "sqlite",
        ("mongosh", "MongoDB Shell"),
    )),
    ("Network Tools", "Troubleshooting DNS/latency and general networking.", _brews(
        ("gping", "ping with graph"),
        ("doggo", "better dig (DNS client)"),
        "nmap",
        ("mtr", "network diagnostic"),
    )),
    ("Security Tools", "GPG for commit signing and sops; pinentry-mac gives macOS GUI prompts.", _brews(
        "gnupg",
        ("age", "modern encryption"),
        ("pinentry-mac", "GUI pinentry for GPG"),
    )),
]

CASK_SECTIONS: List[Section] = [
    ("GUI Apps (Homebrew Casks)", "Optional: enable with --with-casks", _casks("dotnet-sdk")),
    ("Terminals", "", _casks("wezterm", "warp", ("iterm2", "most stable terminal"))),
    ("Code Editors & IDEs", "", _casks(
        "visual-studio-code", "cursor", "rider",
        ("datagrip", "database IDE"),
        ("zed", "fast collaborative editor"),
    )),
    ("Browsers", "", _casks("google-chrome")),
    ("Development Tools", "", _casks(
        "docker",
        ("github", "GitHub Desktop"),
        ("sourcetree", "Git GUI"),
        ("insomnia", "API client"),
        "postman",
        ("tableplus", "database GUI"),
        "azure-data-studio",
        "microsoft-azure-storage-explorer",
    )),
    ("Utilities", "", _casks(
        ("raycast", "better than Spotlight"),
        ("rectangle", "window management"),
        ("maccy", "clipboard manager"),
        ("cleanshot", "CleanShot X - screenshots and annotations"),
        ("istat-menus", "system monitoring"),
        ("bartender", "menu bar organizer"),
        ("the-unarchiver", "archive utility"),
        ("appcleaner", "uninstall apps completely"),
        ("numi", "calculator"),
    )),
    ("Cloud Storage & Sync", "", _casks("google-drive")),
    ("Communication", "", _casks("slack", "discord", "zoom", "microsoft-teams", "whatsapp")),
    ("Productivity", "", _casks(
        ("typora", "markdown editor"),
        ("microsoft-office", "Includes OneDrive"),
    )),
    ("Design", "", _casks("figma")),
    ("AI Tools", "", _casks("claude", "claude-code", "chatgpt")),
    ("Media", "", _casks("iina", ("handbrake", "video converter"))),
    ("Fonts", "", [("tap", "homebrew/cask-fonts", "")] + _casks(
        "font-jetbrains-mono",
        "font-jetbrains-mono-nerd-font",
        "font-fira-code",
        "font-fira-code-nerd-font",
        "font-hack-nerd-font",
        "font-meslo-lg-nerd-font",
    )),
]


def render_brewfile(with_casks: bool) -> str:
    """The whole Brewfile, regenerated on every run."""
    sections = list(CLI_SECTIONS) + (list(CASK_SECTIONS) if with_casks else [])
    lines: List[str] = []
    for title, blurb, entries in sections:
        lines.append("")
        lines.append(f"# === {title} ===")
        if blurb:
            lines.append(f"# {blurb}")
        for kind, name, comment in entries:
            line = f'{kind} "{name}"'
            if comment:
                line = f"{line:<29}# {comment}"
            lines.append(line)
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------
# Shell blocks
# ---------------------------------------------------------------------

BREW_SHELLENV = [
    "if [ -x /opt/homebrew/bin/brew ]; then",
    '  eval "$(/opt/homebrew/bin/brew shellenv)"',
    "elif [ -x /usr/local/bin/brew ]; then",
    '  eval "$(/usr/local/bin/brew shellenv)"',
    "fi",
]


def path_guard(directory: str) -> List[str]:
    """Prepend *directory* to PATH once, only if it exists."""
    return [
        f'if [ -d "{directory}" ]; then',
        '  case ":$PATH:" in',
        f'    *":{directory}:"*) ;;',
        f'    *) export PATH="{directory}:$PATH" ;;',
        "  esac",
        "fi",
    ]


NVM_INIT = [
    'export NVM_DIR="$HOME/.nvm"',
    "# Homebrew installs nvm to /opt/homebrew/opt/nvm or /usr/local/opt/nvm",
    '[ -s "$(brew --prefix)/opt/nvm/nvm.sh" ] && . "$(brew --prefix)/opt/nvm/nvm.sh"',
]

PYTHON313_PATH = [
    "if command -v brew >/dev/null 2>&1; then",
    '  PY_BIN="$(brew --prefix)/opt/python@3.13/libexec/bin"',
    '  if [ -d "$PY_BIN" ]; then export PATH="$PY_BIN:$PATH"; fi',
    "fi",
]


def zsh_plugins(brew_prefix: str) -> List[str]:
    return [
        "# Zsh plugins",
        f"source {brew_prefix}/share/zsh-autosuggestions/zsh-autosuggestions.zsh",
        f"source {brew_prefix}/share/zsh-syntax-highlighting/zsh-syntax-highlighting.zsh",
    ]


ALIASES = """\
# Custom aliases
alias ll='eza -la --icons --git'
alias l='eza -l --icons --git'
alias ls='eza --icons'
alias tree='eza --tree --icons'
alias cat='bat -pp'
# Only alias grep in interactive shells
if [[ $- == *i* ]]; then alias grep='rg'; fi
alias find='fd'
alias du='ncdu'
alias top='htop'
alias g='git'
alias d='docker'
alias k='kubectl'
alias tf='terraform'
alias py='python3'
alias pip='pip3'
alias n='npm'
alias p='pnpm'
alias y='yarn'

# Git aliases
alias gs='git status'
alias gc='git commit -m'
alias gp='git push'
alias gl='git pull'
alias ga='git add'
alias gd='git diff'
alias gco='git checkout'
alias gb='git branch'
alias glog='git log --oneline --graph --decorate'

# Directory shortcuts
alias proj='cd ~/Projects'
alias projects='cd ~/Projects'
alias dl='cd ~/Downloads'
alias dt='cd ~/Desktop'
alias docs='cd ~/Documents'

# Quick edits
alias zshrc='code ~/.zshrc'
alias reload='source ~/.zshrc'
alias nvimrc='nvim ~/.config/nvim/init.lua'
alias vimrc='nvim ~/.vimrc'

# Network
alias ip='curl ifconfig.me'
alias localip='ipconfig getifaddr en0'
alias flush='dscacheutil -flushcache'

# Development
alias serve='python3 -m http.server 8000'
alias json='python3 -m json.tool'

# Modern JavaScript runtimes
alias bun-dev='bun --hot'
alias deno-dev='deno run --watch'
alias deno-task='deno task'

# Docker
alias dps='docker ps'
alias dpsa='docker ps -a'
alias di='docker images'
alias dex='docker exec -it'
alias dlog='docker logs -f'
alias dprune='docker system prune'

# Safety
alias rm='rm -i'
alias cp='cp -i'
alias mv='mv -i'""".splitlines()

SSH_KEYCHAIN = [
    "Host *",
    "  AddKeysToAgent yes",
    "  UseKeychain yes",
    "  IdentityFile ~/.ssh/id_ed25519",
]


def gpg_agent(pinentry: str) -> List[str]:
    return [
        f"pinentry-program {pinentry}",
        "default-cache-ttl 600",
        "max-cache-ttl 7200",
    ]


# ---------------------------------------------------------------------
# Tool lists
# ---------------------------------------------------------------------

NPM_GLOBALS = [
    "@openai/codex",
    "typescript",
    "tsx",
    "eslint",
    "prettier",
    "serve",
    "npm-check-updates",
    "vercel",
    "netlify-cli",
]

BUN_GLOBALS = ["typescript", "eslint", "prettier"]

PIPX_TOOLS = ["ruff", "black", "mypy", "ipython", "httpie"]

VSCODE_EXTENSIONS = [
    "dbaeumer.vscode-eslint",
    "esbenp.prettier-vscode",
    "ms-python.python",
    "ms-vscode.cpptools",
    "golang.go",
    "rust-lang.rust-analyzer",
    "ms-dotnettools.csharp",
    "GitHub.copilot",
    "eamodio.gitlens",
    "ms-vscode-remote.remote-containers",
    "ms-azuretools.vscode-docker",
    "denoland.vscode-deno",
    "oven.bun-vscode",
]

# (app id, name)
MAS_APPS = [
    ("775737590", "iA Writer"),
    ("1352778147", "Bitwarden"),
    ("904280696", "Things 3"),
    ("1153157709", "Speedtest"),
]

GIT_SETTINGS = [
    ("init.defaultBranch", "main"),
    ("pull.rebase", "false"),
    ("core.autocrlf", "input"),
    ("core.editor", "code --wait"),
    ("merge.tool", "vscode"),
    ("mergetool.vscode.cmd", "code --wait $MERGED"),
    ("diff.tool", "vscode"),
    ("difftool.vscode.cmd", "code --wait --diff $LOCAL $REMOTE"),
]

# (domain, key, type flag, value); "{home}" is substituted at run time.
MACOS_DEFAULTS = [
    # Finder
    ("com.apple.finder", "ShowPathbar", "-bool", "true"),
    ("com.apple.finder", "ShowStatusBar", "-bool", "true"),
    ("com.apple.finder", "AppleShowAllFiles", "-bool", "true"),
    ("NSGlobalDomain", "AppleShowAllExtensions", "-bool", "true"),
    ("com.apple.finder", "FXDefaultSearchScope", "-string", "SCcf"),
    ("com.apple.finder", "FXEnableExtensionChangeWarning", "-bool", "false"),
    ("com.apple.finder", "FXPreferredViewStyle", "-string", "Nlsv"),
    ("com.apple.finder", "FXArrangeGroupViewBy", "-string", "Name"),
    ("com.apple.finder", "FXPreferredGroupBy", "-string", "None"),
    # Dock
    ("com.apple.dock", "autohide", "-bool", "true"),
    ("com.apple.dock", "autohide-delay", "-float", "0"),
    ("com.apple.dock", "autohide-time-modifier", "-float", "0.3"),
    ("com.apple.dock", "show-recents", "-bool", "false"),
    ("com.apple.dock", "minimize-to-application", "-bool", "true"),
    # Screenshots
    ("com.apple.screencapture", "location", "-string", "{home}/Screenshots"),
    ("com.apple.screencapture", "type", "-string", "png"),
    # Keyboard
    ("NSGlobalDomain", "KeyRepeat", "-int", "1"),
    ("NSGlobalDomain", "InitialKeyRepeat", "-int", "10"),
    ("NSGlobalDomain", "ApplePressAndHoldEnabled", "-bool", "false"),
    # Trackpad
    ("com.apple.driver.AppleBluetoothMultitouch.trackpad", "Clicking", "-bool", "true"),
    ("NSGlobalDomain", "com.apple.mouse.tapBehavior", "-int", "1"),
    # Safari developer menu
    ("com.apple.Safari", "IncludeDevelopMenu", "-bool", "true"),
    # TextEdit plain text
    ("com.apple.TextEdit", "RichText", "-int", "0"),
]

RESTART_AFTER_DEFAULTS = ["Finder", "Dock"]

HELPFUL_LINKS = ["https://github.com/settings/keys"]

DEV_DIRECTORIES = ["Projects", "Scripts", ".config"]


# ---------------------------------------------------------------------
# Whole files
# ---------------------------------------------------------------------

WEZTERM_CONFIG = """\
local wezterm = require 'wezterm'

return {
  font = wezterm.font('JetBrains Mono'),
  font_size = 13.0,
  color_scheme = 'Catppuccin Mocha',
  window_padding = { left = 10, right = 10, top = 10, bottom = 10 },
  window_background_opacity = 0.95,
}
"""

NVIM_CONFIG = """\
-- Basic Neovim configuration
vim.opt.number = true
vim.opt.relativenumber = true
vim.opt.tabstop = 2
vim.opt.shiftwidth = 2
vim.opt.expandtab = true
vim.opt.smartindent = true
vim.opt.wrap = false
vim.opt.swapfile = false
vim.opt.backup = false
vim.opt.undodir = os.getenv("HOME") .. "/.vim/undodir"
vim.opt.undofile = true
vim.opt.hlsearch = false
vim.opt.incsearch = true
vim.opt.termguicolors = true
vim.opt.scrolloff = 8
vim.opt.signcolumn = "yes"
vim.opt.updatetime = 50
vim.opt.colorcolumn = "80"

-- Set leader key
vim.g.mapleader = " "
vim.g.maplocalleader = " "

-- Basic keybindings
vim.keymap.set("n", "<leader>pv", vim.cmd.Ex)
vim.keymap.set("n", "<leader>w", "<C-w>v")
vim.keymap.set("n", "<leader>s", "<C-w>s")

-- Netrw settings
vim.g.netrw_browse_split = 0
vim.g.netrw_banner = 0
vim.g.netrw_winsize = 25
"""

SUMMARY = """\
# Mac Development Setup Complete

## Quick Checks
- Node (nvm): `node --version`
- Bun: `bun --version`

## Maintenance
- Homebrew: `brew update && brew upgrade` (and occasionally `brew cleanup`)
- Python tools (pipx): `pipx upgrade-all`

## Next Steps
- Restart your terminal or run: `exec zsh`
- Set Git identity:
  - `git config --global user.name "Your Name"`
  - `git config --global user.email "you@example.com"`
"""
