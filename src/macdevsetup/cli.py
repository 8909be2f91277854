# cli.py
from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from macdevsetup.config import OPTION_ALIASES, OPTION_HELP, Option, SetupConfig
from macdevsetup.context import SetupContext
from macdevsetup.executor import SubprocessExecutor
from macdevsetup.logging_utils import configure_logging, default_log_path
from macdevsetup.provision import build_orchestrator, run_setup
from macdevsetup.runner import CyclicDependencyError, PreconditionError, UnknownStepError
from macdevsetup.ui.console import Console, set_console

EXIT_INTERRUPTED = 130


def _alias_param(alias: str) -> str:
    return alias.replace("-", "_")


def feature_options(func):
    """Attach one boolean flag per Option, plus hidden legacy aliases."""
    for alias, target in OPTION_ALIASES.items():
        func = click.option(
            f"--{alias}",
            _alias_param(alias),
            is_flag=True,
            default=False,
            hidden=True,
            help=f"Deprecated alias for {target.flag}",
        )(func)
    # reversed so --help lists them in declaration order
    for option in reversed(list(Option)):
        func = click.option(
            option.flag,
            option.param,
            is_flag=True,
            default=False,
            help=OPTION_HELP[option],
        )(func)
    return func


def selected_options(flags: dict) -> list[Option]:
    selected = [o for o in Option if flags.get(o.param)]
    for alias, target in OPTION_ALIASES.items():
        if flags.get(_alias_param(alias)) and target not in selected:
            selected.append(target)
    return selected


@click.command(
    context_settings={
        "help_option_names": ["-h", "--help"],
        "auto_envvar_prefix": "MAC_DEV_SETUP",
    }
)
@click.option("--full", is_flag=True, default=False, help="Enable all optional steps")
@feature_options
@click.option(
    "--home",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Home directory to provision (defaults to the current user's)",
)
@click.option(
    "--command-timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds before an external command is killed (default: no limit)",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Log file path (defaults to ~/Library/Logs/mac-dev-setup.log)",
)
@click.option("--plan", "plan_only", is_flag=True, default=False, help="Print the step plan and exit")
@click.option("--print-plan/--no-print-plan", default=True, show_default=True, help="Print the step plan before running")
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
def cli(full, home, command_timeout, log_file, plan_only, print_plan, debug, **flags):
    """
    Idempotent macOS developer setup.

    Safe defaults: Xcode CLT, Homebrew, CLI packages from ~/Brewfile and dev
    directories. Everything else is opt-in via the flags below, or --full.
    """
    console = Console(debug=debug)
    set_console(console)

    config = SetupConfig.from_flags(
        full=full,
        selected=selected_options(flags),
        home=home,
        command_timeout=command_timeout,
    )
    log_path = configure_logging(
        log_file or default_log_path(config.home),
        level=logging.DEBUG if debug else logging.INFO,
        also_console=debug,
    )
    console.print_debug(f"Logging to {log_path}")

    try:
        if plan_only:
            setup = SetupContext(config=config, executor=SubprocessExecutor(), console=console)
            console.print_plan(build_orchestrator(setup).plan())
            return

        report = run_setup(config, console=console, print_plan=print_plan)

    except PreconditionError as e:
        if e.exit_code == 0:
            console.print_info(e.message)
            if e.hint:
                console.print_info(e.hint)
        else:
            console.print_error("Setup cannot continue", e.message, suggestion=e.hint)
        sys.exit(e.exit_code)
    except CyclicDependencyError as e:
        console.print_error(
            "Invalid step graph",
            "Steps depend on each other in a loop:",
            details=[" -> ".join(e.cycle)],
        )
        sys.exit(1)
    except UnknownStepError as e:
        console.print_error(
            "Invalid step graph",
            f"Step '{e.step}' depends on unknown step '{e.missing}'",
            details=[f"Known steps: {', '.join(sorted(e.known))}"],
        )
        sys.exit(1)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(EXIT_INTERRUPTED)

    console.print_info(f"\nLog file: {log_path}")
    if report.cancelled:
        sys.exit(EXIT_INTERRUPTED)


if __name__ == "__main__":
    cli()
