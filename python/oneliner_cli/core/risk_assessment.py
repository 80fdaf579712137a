"""Static risk assessment for shell commands.

A command runs through a fixed sequence of independent detectors, each
returning human-readable findings for one risk category. Findings are
deduplicated in first-seen order and mapped to a single RiskLevel by the
severity policy, unless a forbidden binary short-circuits to Critical.

The analyzer is pure: no I/O, no shared mutable state beyond the immutable
pattern catalogue, and it never raises for string input.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .risk_rules import (
    DEFAULT_CATALOGUE,
    DEFAULT_SEVERITY_POLICY,
    EXCESSIVE_ESCAPING,
    RM_CRITICAL_PATH,
    RM_VERIFY_PATH,
    RiskCatalogue,
    RiskLevel,
    SeverityPolicy,
)

EMPTY_COMMAND = "empty command"
CONTROL_CHARACTERS = "contains invalid control characters"
COMMAND_TOO_LONG = "command too long to analyze"

# Python's re backtracks; cap the input so every detector stays bounded.
MAX_COMMAND_LENGTH = 8192

_WHITESPACE = re.compile(r"\s+")
# File, group, record and unit separators: str.isspace() accepts them, but they
# are control characters.
_SEPARATOR_CONTROLS = frozenset("\x1c\x1d\x1e\x1f")
_INVOCATION_END = re.compile(r"[;&|]")


@dataclass
class RiskAssessment:
    level: RiskLevel = RiskLevel.NONE
    reasons: list[str] = field(default_factory=list)
    blacklisted: str | None = None

    def to_dict(self) -> dict:
        return {
            "level": self.level.label,
            "reasons": list(self.reasons),
            "blacklisted": self.blacklisted,
        }


def normalize_command(command: str) -> str:
    """Collapse whitespace runs, trim, lowercase."""
    return _WHITESPACE.sub(" ", command.strip()).lower()


def has_control_characters(command: str) -> bool:
    return any(
        ch == "\x00" or (not ch.isprintable() and (not ch.isspace() or ch in _SEPARATOR_CONTROLS))
        for ch in command
    )


# ── Detectors ────────────────────────────────────────────────────────

Detector = Callable[[str, RiskCatalogue], "list[str]"]


def detect_obfuscation(command: str, catalogue: RiskCatalogue = DEFAULT_CATALOGUE) -> list[str]:
    issues = catalogue.obfuscation.descriptions(command)
    escapes = command.count("\\")
    quotes = command.count('"') + command.count("'")
    if escapes > catalogue.max_backslashes or quotes > catalogue.max_quotes:
        issues.append(EXCESSIVE_ESCAPING)
    return issues


def detect_privilege_escalation(command: str, catalogue: RiskCatalogue = DEFAULT_CATALOGUE) -> list[str]:
    return catalogue.privilege.descriptions(normalize_command(command))


def detect_destructive_file_ops(command: str, catalogue: RiskCatalogue = DEFAULT_CATALOGUE) -> list[str]:
    normalized = normalize_command(command)
    issues: list[str] = []

    invocations = catalogue.rm_invocations.scan_all(normalized)
    if invocations:
        targets_critical = any(
            catalogue.dangerous_paths.has_matches(_invocation_arguments(normalized, m.start, m.end))
            for m in invocations
        )
        issues.append(RM_CRITICAL_PATH if targets_critical else RM_VERIFY_PATH)

    issues.extend(catalogue.file_deletion.descriptions(normalized))
    return issues


def detect_disk_operations(command: str, catalogue: RiskCatalogue = DEFAULT_CATALOGUE) -> list[str]:
    return catalogue.disk.descriptions(normalize_command(command))


def detect_system_file_modification(command: str, catalogue: RiskCatalogue = DEFAULT_CATALOGUE) -> list[str]:
    normalized = normalize_command(command)
    issues: list[str] = []

    for path in catalogue.critical_files:
        first = normalized.find(path)
        if first == -1:
            continue
        last = normalized.rfind(path)
        # operator somewhere before the path, or somewhere after it
        written = (
            catalogue.write_operators.first(normalized, 0, last) is not None
            or catalogue.write_operators.first(normalized, first + len(path)) is not None
        )
        if written:
            issues.append(f"modification to critical system file: {path}")

    issues.extend(catalogue.permissions.descriptions(normalized))
    return issues


def detect_network_operations(command: str, catalogue: RiskCatalogue = DEFAULT_CATALOGUE) -> list[str]:
    return catalogue.network.descriptions(normalize_command(command))


def detect_resource_exhaustion(command: str, catalogue: RiskCatalogue = DEFAULT_CATALOGUE) -> list[str]:
    issues = catalogue.fork_bombs.descriptions(command)

    loop = catalogue.unbounded_loops.first(command)
    if loop is not None and not catalogue.throttles.has_matches(command):
        issues.append(loop.pattern.description)

    issues.extend(catalogue.bulk_writes.descriptions(command))
    return issues


def detect_data_exfiltration(command: str, catalogue: RiskCatalogue = DEFAULT_CATALOGUE) -> list[str]:
    return catalogue.exfiltration.descriptions(normalize_command(command))


PRIVILEGE_ESCALATION = "privilege_escalation"

DETECTORS: tuple[tuple[str, Detector], ...] = (
    ("obfuscation", detect_obfuscation),
    (PRIVILEGE_ESCALATION, detect_privilege_escalation),
    ("destructive_file_ops", detect_destructive_file_ops),
    ("disk_operations", detect_disk_operations),
    ("system_file_modification", detect_system_file_modification),
    ("network_operations", detect_network_operations),
    ("resource_exhaustion", detect_resource_exhaustion),
    ("data_exfiltration", detect_data_exfiltration),
)


# ── Blacklist ────────────────────────────────────────────────────────


def clean_binary_names(names: Iterable[str]) -> tuple[str, ...]:
    """Lowercase, strip and deduplicate binary names, dropping blanks."""
    return tuple(dict.fromkeys(n.strip().lower() for n in names if n and n.strip()))


def find_forbidden_binary(normalized: str, names: Iterable[str]) -> str | None:
    for name in names:
        if re.search(rf"(?<!\w){re.escape(name)}(?!\w)", normalized):
            return name
    return None


# ── Assessor ─────────────────────────────────────────────────────────


class RiskAssessor:
    def __init__(
        self,
        catalogue: RiskCatalogue = DEFAULT_CATALOGUE,
        policy: SeverityPolicy = DEFAULT_SEVERITY_POLICY,
        forbidden_binaries: Iterable[str] = (),
    ) -> None:
        self._catalogue = catalogue
        self._policy = policy
        self._forbidden = clean_binary_names(forbidden_binaries)

    @property
    def forbidden_binaries(self) -> tuple[str, ...]:
        return self._forbidden

    def set_forbidden_binaries(self, names: Iterable[str]) -> None:
        # Built first, then swapped in one assignment.
        self._forbidden = clean_binary_names(names)

    def assess(
        self,
        command: str,
        privilege_escalation_intended: bool = False,
        extra_forbidden_binaries: Iterable[str] = (),
    ) -> RiskAssessment:
        forbidden = self._forbidden
        trimmed = command.strip()

        if not trimmed:
            return RiskAssessment(level=RiskLevel.NONE, reasons=[EMPTY_COMMAND])
        if has_control_characters(trimmed):
            return RiskAssessment(level=RiskLevel.HIGH, reasons=[CONTROL_CHARACTERS])
        if len(trimmed) > MAX_COMMAND_LENGTH:
            return RiskAssessment(level=RiskLevel.HIGH, reasons=[COMMAND_TOO_LONG])

        reasons: dict[str, None] = {}
        for name, detector in DETECTORS:
            if name == PRIVILEGE_ESCALATION and privilege_escalation_intended:
                continue
            for issue in detector(trimmed, self._catalogue):
                reasons.setdefault(issue, None)
        findings = list(reasons)

        names = clean_binary_names((*forbidden, *extra_forbidden_binaries))
        binary = find_forbidden_binary(normalize_command(trimmed), names)
        if binary is not None:
            findings.append(f"blacklisted binary detected: {binary}")
            return RiskAssessment(level=RiskLevel.CRITICAL, reasons=findings, blacklisted=binary)

        return RiskAssessment(level=self._policy.classify(findings), reasons=findings)


_default_assessor = RiskAssessor()


def assess(
    command: str,
    privilege_escalation_intended: bool = False,
    extra_forbidden_binaries: Iterable[str] = (),
) -> RiskAssessment:
    """Assess *command* with the default catalogue and severity policy."""
    return _default_assessor.assess(command, privilege_escalation_intended, extra_forbidden_binaries)


# ------------------------------------------------------------------


def _invocation_arguments(normalized: str, start: int, end: int) -> str:
    """Text of one invocation: from the match up to the next ; & or |."""
    stop = _INVOCATION_END.search(normalized, end)
    return normalized[start:stop.start() if stop else len(normalized)]
