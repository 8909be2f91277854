# step_workflows/system.py
from __future__ import annotations

import time
from pathlib import Path

from .. import catalog
from ..context import SetupContext
from ..env import EnvironmentContext
from ..runner import StepFailure

DOCKER_APP = Path("/Applications/Docker.app")
DOCKER_START_GRACE = 5.0


def directories(setup: SetupContext, env: EnvironmentContext) -> None:
    for name in catalog.DEV_DIRECTORIES:
        (setup.home / name).mkdir(parents=True, exist_ok=True)


def macos_defaults(setup: SetupContext, env: EnvironmentContext) -> None:
    """Finder, Dock, keyboard and trackpad preferences."""
    ex = setup.executor
    (setup.home / "Screenshots").mkdir(parents=True, exist_ok=True)

    failed = []
    for domain, key, kind, value in catalog.MACOS_DEFAULTS:
        value = value.format(home=setup.home)
        if not ex.execute(["defaults", "write", domain, key, kind, value], env=env).ok:
            failed.append(f"{domain} {key}")

    for app in catalog.RESTART_AFTER_DEFAULTS:
        ex.execute(["killall", app], env=env)

    if failed:
        raise StepFailure(step="macos-defaults", reason=f"defaults write failed for: {', '.join(failed)}")


def dotnet_dev_certs(setup: SetupContext, env: EnvironmentContext) -> None:
    setup.require("dotnet", env, "dotnet-dev-certs")
    setup.executor.execute(["dotnet", "dev-certs", "https", "--trust"], env=env, check=True)


def docker(setup: SetupContext, env: EnvironmentContext) -> EnvironmentContext:
    """Start Docker Desktop and check that hello-world runs."""
    ex = setup.executor
    if DOCKER_APP.is_dir():
        ex.execute(["open", "-g", "-a", "Docker"], env=env)
    else:
        setup.warn(f"{DOCKER_APP.name} not found (install via --with-casks or manually).")

    # Make the Desktop CLI and credential helper resolve from ~/.local/bin
    bundled = DOCKER_APP / "Contents" / "Resources" / "bin"
    tools = ("docker", "docker-credential-osxkeychain")
    if all((bundled / t).exists() for t in tools):
        local_bin = setup.home / ".local" / "bin"
        local_bin.mkdir(parents=True, exist_ok=True)
        for t in tools:
            link = local_bin / t
            if link.is_symlink() or link.exists():
                link.unlink()
            link.symlink_to(bundled / t)
        env = env.prepend_path(str(local_bin))

    if not setup.has("docker", env):
        setup.warn("docker CLI not found on PATH.")
        return env

    ex.execute(["docker", "context", "use", "desktop-linux"], env=env)
    if not ex.execute(["docker", "version"], env=env).ok:
        setup.warn("Docker engine not reachable yet; waiting briefly...")
        time.sleep(DOCKER_START_GRACE)
    if not ex.execute(["docker", "run", "--rm", "hello-world"], env=env).ok:
        setup.warn("hello-world still failing; try again after Docker fully starts")
    return env


def open_links(setup: SetupContext, env: EnvironmentContext) -> None:
    for url in catalog.HELPFUL_LINKS:
        if not setup.executor.execute(["open", url], env=env).ok:
            setup.warn(f"Could not open {url}")


def write_summary(setup: SetupContext, env: EnvironmentContext) -> None:
    setup.store.rewrite(setup.config.summary_file, catalog.SUMMARY)
