"""Console output formatting utilities for mac-dev-setup."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from ..model import RunReport, Step


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_run_started(
        self,
        home: str,
        options: Iterable[str],
    ) -> None:
        """Print run start information."""
        enabled = sorted(options)
        print("\nSETUP STARTED")
        print(f"Home: {home}")
        print(f"Options: {', '.join(enabled) if enabled else '(safe defaults only)'}")
        print()

    def print_plan(self, steps: Iterable["Step"]) -> None:
        """Print the resolved execution order."""
        print("PLAN")
        for i, step in enumerate(steps, 1):
            state = "run" if step.enabled else "skip"
            deps = f" (needs {', '.join(step.depends_on)})" if step.depends_on else ""
            print(f"  {i:2d}. [{state}] {step.id}{deps}")
        print()

    def print_step_start(self, name: str, description: str = "") -> None:
        """Print step start message."""
        suffix = f": {description}" if description else ""
        print(f"\n▶ {name}{suffix}")

    def print_success(self, name: str) -> None:
        """Print success message."""
        print(f"✓ {name}")

    def print_step_skipped(self, name: str, reason: str) -> None:
        """Print step skipped message."""
        print(f"⏭ {name} (skipped: {reason})")

    def print_failure(
        self,
        name: str,
        reason: str,
        hint: Optional[str] = None,
    ) -> None:
        """
        Print failure message.

        Args:
            name: Step name
            reason: Failure reason/error message
            hint: Optional hint for user
        """
        print(f"✗ {name} FAILED")
        if self.debug:
            print(f"Error details: {reason}")
        else:
            # Show first line of error for non-debug mode
            error_line = reason.split("\n")[0] if reason else "Unknown error"
            print(f"Error: {error_line}")
        if hint:
            print(f"Hint: {hint}")

    def print_warning(self, message: str) -> None:
        """Print a non-fatal warning."""
        print(f"⚠ {message}")

    def print_results(self, report: "RunReport") -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for step_id, result in report.entries:
            print(f"  {step_id}: {str(result).upper() if not result.ok else 'SUCCESS'}")
        counts = report.counts()
        print(
            f"\n{counts['succeeded']} succeeded, "
            f"{counts['skipped']} skipped, "
            f"{counts['failed']} failed"
        )
        if report.cancelled:
            print("Run was cancelled before all steps completed.")

    def print_next_steps(self, lines: Iterable[str]) -> None:
        """Print the closing checklist."""
        print("\nImportant next steps:")
        for i, line in enumerate(lines, 1):
            print(f"  {i}. {line}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
