"""Run a generated command after consent, risk review and confirmation."""
from __future__ import annotations

import subprocess
import sys
import time
from pathlib import Path

from rich import print as rprint

from ..utils.formatter import fmt
from .command_interceptor import CommandEvaluation, CommandInterceptor
from .config_schema import get_consent_path

CONSENT_PHRASE = "i understand"


class ExecutionError(Exception):
    """Raised when a command is blocked, sudo fails, or the command exits non-zero."""

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.exit_code = exit_code


def confirm(question: str) -> bool:
    """Ask a y/N question on the terminal. Anything but y/yes is a no."""
    try:
        answer = input(f"{question} ").strip().lower()
    except EOFError:
        return False
    return answer in ("y", "yes")


def ensure_run_consent(consent_path: Path | None = None) -> bool:
    """One-time acknowledgement before the first --run."""
    path = consent_path or get_consent_path()
    if path.exists():
        return True

    rprint()
    rprint(fmt.warning("This is your first time using --run to automatically execute a command."))
    rprint(fmt.dim("  AI-generated commands can cause irreversible damage to your system."))
    try:
        answer = input(f"Type '{CONSENT_PHRASE}' to continue: ").strip().lower()
    except EOFError:
        answer = ""
    if answer != CONSENT_PHRASE:
        rprint(fmt.error("CANCELLED") + " " + fmt.dim("• user did not confirm understanding"))
        return False

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("consent=granted\n")
    rprint(fmt.success("Consent acknowledged"))
    rprint(fmt.dim("  • you will not see this warning again"))
    return True


def shell_argv(command: str) -> list[str]:
    if sys.platform.startswith("win"):
        return ["cmd", "/C", command]
    return ["sh", "-c", command]


def authenticate_sudo() -> None:
    try:
        result = subprocess.run(["sudo", "-v"])
    except FileNotFoundError as exc:
        raise ExecutionError(f"failed to authenticate with sudo: {exc}") from exc
    if result.returncode != 0:
        raise ExecutionError("failed to authenticate with sudo", result.returncode)


def run_command(command: str) -> float:
    """Run *command* with inherited stdio. Returns elapsed seconds."""
    start = time.monotonic()
    try:
        result = subprocess.run(shell_argv(command))
    except OSError as exc:
        raise ExecutionError(f"command execution failed: {exc}") from exc
    elapsed = time.monotonic() - start
    if result.returncode != 0:
        raise ExecutionError(
            f"command execution failed: exit status {result.returncode}",
            result.returncode,
        )
    return elapsed


class CommandExecutor:
    def __init__(self, interceptor: CommandInterceptor, consent_path: Path | None = None):
        self._interceptor = interceptor
        self._consent_path = consent_path

    def execute(self, command: str, used_sudo_flag: bool = False) -> bool:
        """Review and run *command*. Returns False when the user backs out."""
        if not ensure_run_consent(self._consent_path):
            return False

        evaluation = self._interceptor.evaluate(command, privilege_escalation_intended=used_sudo_flag)

        if evaluation.blocked:
            self._print_reasons("Command BLOCKED", evaluation)
            self._interceptor.log_evaluation(evaluation, "blocked")
            raise ExecutionError(evaluation.reason or "command blocked")

        if evaluation.requires_approval:
            self._print_reasons("Command requires caution", evaluation)
            if not confirm("Proceed? [y/N]"):
                return self._cancelled(evaluation)
            self._interceptor.log_evaluation(evaluation, "approved")
        elif evaluation.needs_sudo and used_sudo_flag:
            rprint(fmt.warning("Requires elevated privileges"))
            if not confirm("Proceed with sudo? [y/N]"):
                return self._cancelled(evaluation)
            self._interceptor.log_evaluation(evaluation, "approved")
        else:
            self._interceptor.log_evaluation(evaluation, "allowed")

        if evaluation.needs_sudo:
            authenticate_sudo()

        rprint()
        rprint(fmt.command(evaluation.command, sudo=evaluation.needs_sudo))

        try:
            elapsed = run_command(evaluation.command)
        except ExecutionError as exc:
            self._interceptor.log_execution(evaluation.command, exc.exit_code or 1, 0.0)
            raise
        self._interceptor.log_execution(evaluation.command, 0, elapsed)
        rprint()
        rprint(fmt.success("SUCCESS") + " " + fmt.dim(f"• executed in {elapsed:.1f}s"))
        return True

    # ------------------------------------------------------------------

    def _cancelled(self, evaluation: CommandEvaluation) -> bool:
        rprint(fmt.error("CANCELLED") + " " + fmt.dim("• user aborted"))
        self._interceptor.log_evaluation(evaluation, "cancelled")
        return False

    @staticmethod
    def _print_reasons(title: str, evaluation: CommandEvaluation) -> None:
        rprint()
        rprint(fmt.warning(title) + " " + fmt.severity(evaluation.risk_level))
        rprint(fmt.divider())
        for i, reason in enumerate(evaluation.reasons, 1):
            rprint(fmt.dim(f"  {i}) {reason}"))
        rprint(fmt.divider())
