"""Turn a risk assessment into a block / approve / allow decision."""
from __future__ import annotations

from dataclasses import dataclass, field

from .audit_logger import AuditLogger
from .config_manager import ConfigManager
from .config_schema import OnelinerConfig
from .risk_assessment import (
    CONTROL_CHARACTERS,
    EMPTY_COMMAND,
    RiskAssessment,
    RiskAssessor,
)
from .risk_rules import RiskLevel


@dataclass
class CommandEvaluation:
    command: str
    assessment: RiskAssessment
    allowed: bool
    requires_approval: bool
    reason: str | None = None
    needs_sudo: bool = False
    reasons: list[str] = field(default_factory=list)

    @property
    def risk_level(self) -> RiskLevel:
        return self.assessment.level

    @property
    def blocked(self) -> bool:
        return not self.allowed and not self.requires_approval


class CommandInterceptor:
    def __init__(
        self,
        config: OnelinerConfig | None = None,
        audit: AuditLogger | None = None,
    ) -> None:
        self._config = config or ConfigManager().load_with_policy()
        self._assessor = RiskAssessor(forbidden_binaries=self._config.blacklisted_binaries)
        self._audit = audit or AuditLogger(enabled=self._config.log_all_actions)

    def evaluate(self, command: str, privilege_escalation_intended: bool = False) -> CommandEvaluation:
        trimmed = command.strip()
        assessment = self._assessor.assess(trimmed, privilege_escalation_intended)
        needs_sudo = trimmed.startswith("sudo ")

        if assessment.blacklisted is not None:
            return CommandEvaluation(
                command=trimmed,
                assessment=assessment,
                allowed=False,
                requires_approval=False,
                reason=f"Uses blacklisted binary: {assessment.blacklisted}",
                needs_sudo=needs_sudo,
                reasons=list(assessment.reasons),
            )

        if assessment.reasons in ([EMPTY_COMMAND], [CONTROL_CHARACTERS]):
            return CommandEvaluation(
                command=trimmed,
                assessment=assessment,
                allowed=False,
                requires_approval=False,
                reason=assessment.reasons[0].capitalize(),
                needs_sudo=needs_sudo,
                reasons=list(assessment.reasons),
            )

        if assessment.reasons:
            return CommandEvaluation(
                command=trimmed,
                assessment=assessment,
                allowed=False,
                requires_approval=True,
                reason="Command requires caution",
                needs_sudo=needs_sudo,
                reasons=list(assessment.reasons),
            )

        return CommandEvaluation(
            command=trimmed,
            assessment=assessment,
            allowed=True,
            requires_approval=False,
            needs_sudo=needs_sudo,
        )

    def log_evaluation(self, evaluation: CommandEvaluation, action_taken: str) -> None:
        self._audit.log_command_evaluated(
            evaluation.command,
            evaluation.risk_level.label.lower(),
            evaluation.allowed,
            action_taken,
            evaluation.reasons,
        )

    def log_execution(self, command: str, exit_code: int, duration: float) -> None:
        self._audit.log_command_executed(command, exit_code, duration)
