# step_workflows/security.py
# Git defaults, GPG pinentry and SSH keys.
from __future__ import annotations

import re
import socket
from pathlib import Path

from .. import catalog
from ..context import SetupContext
from ..env import EnvironmentContext

_AGENT_VAR = re.compile(r"^(SSH_AUTH_SOCK|SSH_AGENT_PID)=([^;]+);", re.MULTILINE)


def _private_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    path.chmod(0o700)
    return path


def git_config(setup: SetupContext, env: EnvironmentContext) -> None:
    ex = setup.executor
    setup.require("git", env, "git-config")
    for key, value in catalog.GIT_SETTINGS:
        ex.execute(["git", "config", "--global", key, value], env=env, check=True)

    if not setup.has("git-credential-manager", env):
        ex.execute(["brew", "install", "--cask", "git-credential-manager"], env=env)
    if not ex.execute(["git-credential-manager", "configure"], env=env).ok:
        setup.warn("git-credential-manager could not be configured")


def _pinentry_path(setup: SetupContext, env: EnvironmentContext) -> str:
    found = setup.executor.which("pinentry-mac", env)
    if found:
        return found
    if Path("/opt/homebrew/bin/pinentry-mac").exists():
        return "/opt/homebrew/bin/pinentry-mac"
    return "/usr/local/bin/pinentry-mac"


def gpg_pinentry(setup: SetupContext, env: EnvironmentContext) -> None:
    """GUI passphrase prompts for commit signing and sops."""
    setup.require("gpg", env, "gpg-pinentry")
    gnupg = _private_dir(setup.home / ".gnupg")
    conf = gnupg / "gpg-agent.conf"

    setup.store.upsert(conf, "pinentry", catalog.gpg_agent(_pinentry_path(setup, env)))
    conf.chmod(0o600)
    setup.executor.execute(["gpgconf", "--kill", "gpg-agent"], env=env)


def parse_agent_env(output: str) -> dict[str, str]:
    """Variables from `ssh-agent -s` output."""
    return {m.group(1): m.group(2) for m in _AGENT_VAR.finditer(output)}


def ssh_key(setup: SetupContext, env: EnvironmentContext) -> EnvironmentContext:
    ex = setup.executor
    ssh_dir = _private_dir(setup.home / ".ssh")
    key = ssh_dir / "id_ed25519"

    if not key.exists():
        setup.require("ssh-keygen", env, "ssh-key")
        ex.execute(
            ["ssh-keygen", "-t", "ed25519", "-C", socket.gethostname(), "-f", str(key), "-N", ""],
            env=env,
            check=True,
        )
        setup.info(f"SSH key generated at {key}.pub")
    else:
        setup.info(f"SSH key already exists at {key}")

    agent = ex.execute(["ssh-agent", "-s"], env=env)
    for name, value in parse_agent_env(agent.stdout).items():
        env = env.with_variable(name, value)

    if not ex.execute(["ssh-add", "--apple-use-keychain", str(key)], env=env).ok:
        if not ex.execute(["ssh-add", str(key)], env=env).ok:
            setup.warn("Could not add the key to ssh-agent")

    ssh_config = ssh_dir / "config"
    setup.store.backup_if_exists(ssh_config)
    setup.store.upsert(ssh_config, "macos-keychain", catalog.SSH_KEYCHAIN)
    ssh_config.chmod(0o600)

    setup.warn("Add your SSH key to GitHub: pbcopy < ~/.ssh/id_ed25519.pub")
    return env
