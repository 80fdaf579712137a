"""Static risk report for a command, without running it."""
from __future__ import annotations

import json
from pathlib import Path

import typer
from rich import print as rprint

from ..core.config_manager import ConfigManager
from ..core.risk_assessment import RiskAssessor
from ..core.risk_rules import RiskLevel
from ..utils.api import EXIT_GENERAL_ERROR
from ..utils.formatter import fmt


def assess(
    command: str = typer.Argument(..., help="Command to assess (quote it)"),
    sudo: bool = typer.Option(False, "--sudo", help="Assess as if run with --sudo"),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON"),
    strict: bool = typer.Option(False, "--strict", help="Exit 1 for High and Critical"),
    config: Path = typer.Option(None, "--config", help="Alternative config file"),
):
    """Assess the risk of a shell command without running it."""
    cfg = ConfigManager(config).load_with_policy()

    assessor = RiskAssessor(forbidden_binaries=cfg.blacklisted_binaries)
    target = f"sudo {command.strip()}" if sudo else command
    result = assessor.assess(target, privilege_escalation_intended=sudo)

    if json_out:
        print(json.dumps({"command": target.strip(), **result.to_dict()}, indent=2))
    else:
        rprint(f"{fmt.severity(result.level)} {fmt.command(target.strip())}")
        if result.reasons:
            rprint(fmt.divider())
            for i, reason in enumerate(result.reasons, 1):
                rprint(fmt.dim(f"  {i}) {reason}"))
        else:
            rprint(fmt.success("No risks detected"))

    if strict and result.level >= RiskLevel.HIGH:
        raise typer.Exit(code=EXIT_GENERAL_ERROR)
