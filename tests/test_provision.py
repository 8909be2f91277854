# test_provision.py
from __future__ import annotations

import pytest

from macdevsetup.config import Option, SetupConfig
from macdevsetup.context import SetupContext
from macdevsetup.model import StepStatus
from macdevsetup.provision import STEPS, build_orchestrator, next_steps, run_setup
from macdevsetup.runner import PreconditionError, SKIP_DEPENDENCY, SKIP_DISABLED
from macdevsetup.step_workflows import system

from conftest import FakeExecutor


@pytest.fixture(autouse=True)
def no_docker_app(monkeypatch, tmp_path):
    monkeypatch.setattr(system, "DOCKER_APP", tmp_path / "Docker.app")
    monkeypatch.setattr(system, "DOCKER_START_GRACE", 0)


def _config(home, *options, full=False):
    return SetupConfig.from_flags(full=full, selected=options, home=home, config_home=home / ".config")


def _run(config, executor, console, env):
    return run_setup(
        config,
        executor=executor,
        console=console,
        env=env,
        system_name="Darwin",
        locate=lambda: "/opt/homebrew",
    )


def test_every_option_gates_a_step():
    gated = {d.option for d in STEPS if d.option is not None}
    # --with-casks only changes the Brewfile contents
    assert gated == set(Option) - {Option.CASKS}


def test_zshrc_writers_run_after_oh_my_zsh(home, console):
    config = _config(home, full=True)
    setup = SetupContext(config=config, executor=FakeExecutor(), console=console)
    order = [s.id for s in build_orchestrator(setup).plan()]

    for sid in ("dotnet-tools-path", "shell-enhancements", "node-tools", "python-tools", "shell-aliases"):
        assert order.index("oh-my-zsh") < order.index(sid)
    assert order.index("shell-enhancements") < order.index("node-tools")
    assert order.index("brewfile") < order.index("brew-bundle") < order.index("git-flow")
    assert order[-1] == "summary"


def test_safe_default_run(home, console, env):
    ex = FakeExecutor(tools=["brew"])
    report = _run(_config(home), ex, console, env)

    statuses = report.statuses()
    for sid in ("brew-shellenv", "brewfile", "brew-bundle", "git-flow", "directories"):
        assert statuses[sid] is StepStatus.SUCCEEDED
    assert report.result_for("docker").reason == SKIP_DISABLED
    assert not (home / ".zshrc").exists()
    assert (home / "Brewfile").is_file()
    assert (home / "Projects").is_dir()
    # Homebrew environment reached the steps
    bundle_env = ex.envs[ex.calls.index(["brew", "update"])]
    assert bundle_env.path[0] == "/opt/homebrew/bin"


def test_configure_shell_writes_expected_blocks(home, console, env):
    report = _run(_config(home, Option.SHELL), FakeExecutor(tools=["brew"]), console, env)

    assert not report.failed_steps()
    zshrc = (home / ".zshrc").read_text()
    for name in ("dotnet-tools", "starship", "zsh-plugins", "aliases"):
        assert f"# >>> mac-dev-setup {name} >>>" in zshrc
    assert "# >>> mac-dev-setup brew-shellenv >>>" in (home / ".zprofile").read_text()


def test_second_run_leaves_dotfiles_unchanged(home, console, env):
    config = _config(home, Option.SHELL)
    _run(config, FakeExecutor(tools=["brew"]), console, env)
    first = (home / ".zshrc").read_bytes(), (home / ".zprofile").read_bytes()

    _run(config, FakeExecutor(tools=["brew"]), console, env)

    assert ((home / ".zshrc").read_bytes(), (home / ".zprofile").read_bytes()) == first


def test_failed_bundle_skips_dependents_only(home, console, env):
    ex = FakeExecutor(tools=["brew"], fail=[("brew", "update")])
    report = _run(_config(home, Option.MSSQL_TOOLS), ex, console, env)

    assert report.result_for("brew-bundle").status is StepStatus.FAILED
    for sid in ("git-flow", "mssql-tools"):
        result = report.result_for(sid)
        assert result.reason == SKIP_DEPENDENCY
        assert result.blocked_by == ("brew-bundle",)
    assert report.result_for("directories").ok
    assert not ex.ran("brew", "tap")


def test_full_run_completes_despite_failures(home, console, env):
    report = _run(_config(home, full=True), FakeExecutor(tools=["brew"]), console, env)

    assert len(report.entries) == len(STEPS)
    assert not report.cancelled
    failed = set(report.failed_steps())
    # tools missing from the fake PATH
    assert {"python-tools", "git-config", "gpg-pinentry", "ssh-key", "vscode-extensions"} <= failed
    assert report.result_for("summary").ok
    assert (home / "Desktop" / "setup-complete.md").is_file()


def test_preconditions_stop_before_any_step(home, console, env):
    ex = FakeExecutor(tools=["brew"])
    with pytest.raises(PreconditionError):
        run_setup(_config(home), executor=ex, console=console, env=env, system_name="Linux")
    assert ex.calls == []
    assert list(home.iterdir()) == []


def test_next_steps_reflect_options(home):
    assert any("--generate-ssh-key" in ln for ln in next_steps(_config(home)))
    lines = next_steps(_config(home, Option.SSH_KEY, Option.SUMMARY))
    assert any("pbcopy" in ln for ln in lines)
    assert any("setup-complete.md" in ln for ln in lines)
