# test_step_workflows.py
from __future__ import annotations

import stat

import pytest

from macdevsetup.config import Option
from macdevsetup.executor import CommandError
from macdevsetup.runner import StepFailure
from macdevsetup.step_workflows import editors, packages, runtimes, security, shell, system

from conftest import FakeExecutor


# ---------------------------------------------------------------------
# packages
# ---------------------------------------------------------------------

def test_brewfile_without_casks(make_setup, env, capsys):
    setup = make_setup()
    packages.write_brewfile(setup, env)

    text = setup.config.brewfile.read_text()
    assert 'brew "git"' in text
    assert 'cask "' not in text
    assert "--with-casks" in capsys.readouterr().out


def test_brewfile_regeneration_keeps_backup(make_setup, env):
    setup = make_setup(Option.CASKS)
    setup.config.brewfile.write_text("old\n")

    packages.write_brewfile(setup, env)

    assert 'cask "' in setup.config.brewfile.read_text()
    backups = list(setup.home.glob("Brewfile.bak.*"))
    assert len(backups) == 1 and backups[0].read_text() == "old\n"


def test_brew_bundle_requires_brew(make_setup, env):
    with pytest.raises(StepFailure):
        packages.brew_bundle(make_setup(), env)


def test_brew_bundle_partial_failure_only_warns(make_setup, env):
    ex = FakeExecutor(tools=["brew"], fail=[("brew", "bundle")])
    setup = make_setup(executor=ex)
    packages.brew_bundle(setup, env)
    assert ex.ran("brew", "update")


def test_git_flow_falls_back_to_avh(make_setup, env):
    ex = FakeExecutor(fail=[("brew", "install", "git-flow")])
    packages.git_flow(make_setup(executor=ex), env)
    assert ex.calls[-1] == ["brew", "install", "git-flow-avh"]


def test_git_flow_failure(make_setup, env):
    ex = FakeExecutor(fail=[("brew", "install")])
    with pytest.raises(StepFailure):
        packages.git_flow(make_setup(executor=ex), env)


def test_mas_requires_sign_in(make_setup, env):
    ex = FakeExecutor(tools=["mas"], fail=[("mas", "account")])
    with pytest.raises(StepFailure) as exc:
        packages.mas_apps(make_setup(executor=ex), env)
    assert exc.value.hint


# ---------------------------------------------------------------------
# shell
# ---------------------------------------------------------------------

def test_shell_enhancements_write_blocks(make_setup, env):
    ex = FakeExecutor(tools=["zoxide"])
    setup = make_setup(executor=ex)
    shell.shell_enhancements(setup, env.with_homebrew("/opt/homebrew"))

    store, zshrc = setup.store, setup.config.zshrc
    assert store.read_block(zshrc, "starship") == ['eval "$(starship init zsh)"']
    assert store.read_block(zshrc, "zoxide") == ['eval "$(zoxide init zsh)"']
    assert store.read_block(zshrc, "direnv") is None
    assert any("/opt/homebrew/share/zsh-autosuggestions" in ln for ln in store.read_block(zshrc, "zsh-plugins"))
    assert ex.ran("/opt/homebrew/opt/fzf/install")


def test_shell_steps_are_idempotent(make_setup, env):
    setup = make_setup()
    setup.config.zshrc.write_text("# mine\n")
    for _ in range(2):
        shell.dotnet_tools_path(setup, env)
        shell.shell_aliases(setup, env)
    first = setup.config.zshrc.read_text()
    shell.shell_aliases(setup, env)

    assert setup.config.zshrc.read_text() == first
    assert first.startswith("# mine\n")
    assert first.count(">>> mac-dev-setup aliases >>>") == 1
    assert setup.store.read_block(setup.config.zprofile, "dotnet-tools")


def test_oh_my_zsh_skips_when_present(make_setup, env):
    ex = FakeExecutor()
    setup = make_setup(executor=ex)
    (setup.home / ".oh-my-zsh").mkdir()
    shell.oh_my_zsh(setup, env)
    assert ex.calls == []


def test_oh_my_zsh_install_failure_raises(make_setup, env):
    ex = FakeExecutor(fail=[("/bin/bash",)])
    with pytest.raises(CommandError):
        shell.oh_my_zsh(make_setup(executor=ex), env)


# ---------------------------------------------------------------------
# runtimes
# ---------------------------------------------------------------------

def test_node_tools_threads_node_bin_into_env(make_setup, env):
    ex = FakeExecutor(
        tools=["npm"],
        responses={("/bin/bash", "-c"): "/home/u/.nvm/versions/node/v22.0.0/bin\n"},
    )
    setup = make_setup(Option.SHELL, executor=ex)

    out = runtimes.node_tools(setup, env.with_homebrew("/opt/homebrew"))

    assert out.path[0] == "/home/u/.nvm/versions/node/v22.0.0/bin"
    assert out.get("NVM_DIR") == str(setup.home / ".nvm")
    assert setup.store.read_block(setup.config.zshrc, "nvm")
    assert ex.ran("npm", "install", "-g")


def test_node_tools_without_shell_flag_leaves_zshrc_alone(make_setup, env):
    setup = make_setup()
    runtimes.node_tools(setup, env)
    assert not setup.config.zshrc.exists()


def test_python_tools_requires_pipx(make_setup, env):
    with pytest.raises(StepFailure) as exc:
        runtimes.python_tools(make_setup(), env)
    assert "pipx" in exc.value.reason


def test_python_tools_reports_failed_packages(make_setup, env):
    ex = FakeExecutor(tools=["pipx"], fail=[("pipx", "install", "--force", "mypy")])
    with pytest.raises(StepFailure) as exc:
        runtimes.python_tools(make_setup(executor=ex), env)
    assert "mypy" in exc.value.reason
    assert ex.ran("pipx", "install", "--force", "ruff")


# ---------------------------------------------------------------------
# security
# ---------------------------------------------------------------------

def test_parse_agent_env():
    output = (
        "SSH_AUTH_SOCK=/tmp/ssh-abc/agent.1; export SSH_AUTH_SOCK;\n"
        "SSH_AGENT_PID=4242; export SSH_AGENT_PID;\n"
        "echo Agent pid 4242;\n"
    )
    assert security.parse_agent_env(output) == {
        "SSH_AUTH_SOCK": "/tmp/ssh-abc/agent.1",
        "SSH_AGENT_PID": "4242",
    }


def test_ssh_key_exports_agent_and_writes_config(make_setup, env):
    ex = FakeExecutor(
        tools=["ssh-keygen"],
        responses={("ssh-agent",): "SSH_AUTH_SOCK=/tmp/a.sock; export SSH_AUTH_SOCK;\n"},
    )
    setup = make_setup(executor=ex)

    out = security.ssh_key(setup, env)

    ssh_dir = setup.home / ".ssh"
    assert out.get("SSH_AUTH_SOCK") == "/tmp/a.sock"
    assert ex.ran("ssh-keygen", "-t", "ed25519")
    assert setup.store.read_block(ssh_dir / "config", "macos-keychain")[0] == "Host *"
    assert stat.S_IMODE((ssh_dir / "config").stat().st_mode) == 0o600
    assert stat.S_IMODE(ssh_dir.stat().st_mode) == 0o700
    # ssh-add ran with the agent socket in its environment
    idx = next(i for i, c in enumerate(ex.calls) if c[0] == "ssh-add")
    assert ex.envs[idx].get("SSH_AUTH_SOCK") == "/tmp/a.sock"


def test_ssh_key_keeps_existing_key(make_setup, env):
    ex = FakeExecutor()
    setup = make_setup(executor=ex)
    ssh_dir = setup.home / ".ssh"
    ssh_dir.mkdir()
    (ssh_dir / "id_ed25519").write_text("key")
    (ssh_dir / "config").write_text("Host work\n")

    security.ssh_key(setup, env)

    assert not ex.ran("ssh-keygen")
    assert list(ssh_dir.glob("config.bak.*"))
    assert (ssh_dir / "config").read_text().startswith("Host work\n")


def test_gpg_pinentry(make_setup, env):
    ex = FakeExecutor(tools=["gpg", "pinentry-mac"])
    setup = make_setup(executor=ex)

    security.gpg_pinentry(setup, env)

    conf = setup.home / ".gnupg" / "gpg-agent.conf"
    assert setup.store.read_block(conf, "pinentry")[0] == "pinentry-program /fake/bin/pinentry-mac"
    assert stat.S_IMODE(conf.stat().st_mode) == 0o600
    assert ex.ran("gpgconf", "--kill", "gpg-agent")


def test_git_config_applies_settings(make_setup, env):
    ex = FakeExecutor(tools=["git", "git-credential-manager"])
    security.git_config(make_setup(executor=ex), env)
    assert ex.ran("git", "config", "--global", "init.defaultBranch", "main")
    assert not ex.ran("brew", "install", "--cask", "git-credential-manager")


# ---------------------------------------------------------------------
# system / editors
# ---------------------------------------------------------------------

def test_directories(make_setup, env):
    setup = make_setup()
    system.directories(setup, env)
    assert (setup.home / "Projects").is_dir()
    assert (setup.home / "Scripts").is_dir()


def test_macos_defaults_substitutes_home_and_reports_failures(make_setup, env):
    ex = FakeExecutor(fail=[("defaults", "write", "com.apple.dock", "autohide")])
    setup = make_setup(executor=ex)

    with pytest.raises(StepFailure) as exc:
        system.macos_defaults(setup, env)

    assert "com.apple.dock autohide" in exc.value.reason
    assert ex.ran("defaults", "write", "com.apple.screencapture", "location", "-string",
                  f"{setup.home}/Screenshots")
    assert ex.ran("killall", "Dock")


def test_docker_missing_cli_warns(make_setup, env, monkeypatch, tmp_path):
    monkeypatch.setattr(system, "DOCKER_APP", tmp_path / "NoDocker.app")
    ex = FakeExecutor()
    system.docker(make_setup(executor=ex), env)
    assert not ex.ran("docker")


def test_docker_waits_when_engine_is_down(make_setup, env, monkeypatch, tmp_path):
    monkeypatch.setattr(system, "DOCKER_APP", tmp_path / "NoDocker.app")
    monkeypatch.setattr(system, "DOCKER_START_GRACE", 0)
    ex = FakeExecutor(tools=["docker"], fail=[("docker", "version")])
    system.docker(make_setup(executor=ex), env)
    assert ex.ran("docker", "run", "--rm", "hello-world")


def test_summary_and_editor_configs(make_setup, env):
    setup = make_setup()
    system.write_summary(setup, env)
    editors.wezterm_config(setup, env)
    editors.nvim_config(setup, env)

    assert setup.config.summary_file.is_file()
    assert (setup.config.config_home / "wezterm" / "wezterm.lua").is_file()
    assert (setup.config.config_home / "nvim" / "init.lua").is_file()
    assert (setup.home / ".vim" / "undodir").is_dir()


def test_vscode_extensions_lists_failures(make_setup, env):
    ex = FakeExecutor(tools=["code"], fail=[("code", "--install-extension", "ms-python.python")])
    with pytest.raises(StepFailure) as exc:
        editors.vscode_extensions(make_setup(executor=ex), env)
    assert "ms-python.python" in exc.value.reason


def test_long_installers_stream_their_output(make_setup, env):
    ex = FakeExecutor(tools=["brew"])
    setup = make_setup(executor=ex)
    packages.brew_bundle(setup, env)
    shell.oh_my_zsh(setup, env)

    assert ex.streamed[0][:2] == ["brew", "bundle"]
    assert ex.streamed[1][:2] == ["/bin/bash", "-c"]
    assert ["brew", "update"] not in ex.streamed
