"""Centralized risk assessment rules.

Single source of truth for the pattern catalogue, the severity keyword tiers
and the default forbidden binaries. Imported by risk_assessment, config_schema
and the CLI.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Sequence

from .pattern_engine import Pattern, PatternTable


class RiskLevel(IntEnum):
    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()

    def __str__(self) -> str:
        return self.label

    def __format__(self, spec: str) -> str:
        return format(self.label, spec)


# ── Pattern tables ───────────────────────────────────────────────────
# Detectors marked (raw) see the trimmed command as typed; all others see the
# normalized form (collapsed whitespace, lowercase).

# (raw)
OBFUSCATION_PATTERNS: tuple[Pattern, ...] = (
    Pattern(r"\\x[0-9a-fA-F]{2}", "hex-encoded characters detected (possible obfuscation)"),
    Pattern(r"base64|b64decode|atob", "base64 encoding/decoding detected (possible obfuscation)"),
    Pattern(r"\beval\b|\bexec\b", "eval/exec detected (dynamic code execution)"),
    Pattern(r"(?<![\w-])rev(?![\w-])", "reverse command detected (possible obfuscation)"),
)

EXCESSIVE_ESCAPING = "excessive escaping/quoting detected"
MAX_BACKSLASHES = 5
MAX_QUOTES = 6

PRIVILEGE_PATTERNS: tuple[Pattern, ...] = (
    Pattern(r"\bsudo\s+", "sudo privilege escalation"),
    Pattern(r"\bsu\s+", "su privilege escalation"),
    Pattern(r"\bsu\s+-", "su with privilege escalation"),
    Pattern(r"\bdoas\b", "doas privilege escalation"),
    Pattern(r"\bpkexec\b", "pkexec privilege escalation"),
)

# Lookaheads stay inside one invocation ([^;&|]) and accept the recursive and
# force flags in any order, bundled (-rf, -fr, -rvf) or separate.
RM_INVOCATION_PATTERNS: tuple[Pattern, ...] = (
    Pattern(
        r"\brm(?=\s)(?=[^;&|]*\s(?:-[a-z]*r|--recursive))(?=[^;&|]*\s(?:-[a-z]*f|--force))",
        "rm with recursive and force flags",
    ),
    Pattern(r"/bin/rm(?=[^;&|]*\s-[a-z]*[rf])", "rm invoked by absolute path"),
    Pattern(r"\$\(\s*(?:which|command\s+-v|type\s+-p)\s+rm\s*\)", "rm resolved by command substitution"),
    Pattern(r"`\s*(?:which|command\s+-v|type\s+-p)\s+rm\s*`", "rm resolved by command substitution"),
)

# Matched against the arguments of one rm invocation.
DANGEROUS_PATH_PATTERNS: tuple[Pattern, ...] = (
    Pattern(r"\s[\"']?/[\"']?(?=\s|$)", "filesystem root"),
    Pattern(r"\s[\"']?/\*", "filesystem root with wildcard"),
    Pattern(r"\s[\"']?/home\b", "home directories"),
    Pattern(r"\s[\"']?/etc\b", "system configuration"),
    Pattern(r"\s[\"']?/usr\b", "system binaries"),
    Pattern(r"\s[\"']?/var\b", "system data"),
    Pattern(r"\s[\"']?/boot\b", "boot files"),
    Pattern(r"\s[\"']?~", "home directory"),
    Pattern(r"\s[\"']?\$\{?home\b", "$HOME variable"),
    Pattern(r"[a-z]:\\?\*", "Windows drive root"),
)

RM_CRITICAL_PATH = "destructive rm command targeting critical path"
RM_VERIFY_PATH = "destructive rm -rf detected (verify target path)"

FILE_DELETION_PATTERNS: tuple[Pattern, ...] = (
    Pattern(r"\bfind\b[^;&|]*\s-delete\b", "find -delete can remove many files (potentially destructive)"),
    Pattern(r"\bshred\b", "shred detected (secure file deletion, unrecoverable)"),
    Pattern(r"\btruncate\b[^;&|]*(?:-s\s*|--size[=\s]\s*)0(?![\d.])", "truncate to zero detected (data loss)"),
)

# Every description carries "disk" or "partition" so the category always
# aggregates to Critical.
DISK_PATTERNS: tuple[Pattern, ...] = (
    Pattern(r"\bdd\b[^;&|]*\bof\s*=\s*/dev/", "dd writing to raw device (can overwrite entire disk)"),
    Pattern(r">\s*/dev/(?:sd[a-z]|nvme|hd[a-z])", "output redirection to block device (will overwrite disk)"),
    Pattern(r"\bmkfs\b", "filesystem creation (will erase partition)"),
    Pattern(r"\bfdisk\b", "disk partitioning tool"),
    Pattern(r"\bparted\b", "partition editor"),
    Pattern(r"\bgdisk\b", "GPT partition tool"),
    Pattern(r"\bcfdisk\b", "curses-based partition tool"),
    Pattern(r"\bmkswap\b", "swap creation (will erase partition)"),
    Pattern(r"\bsgdisk\b", "GPT partition manipulation"),
)

CRITICAL_FILES: tuple[str, ...] = (
    "/etc/passwd",
    "/etc/shadow",
    "/etc/sudoers",
    "/etc/fstab",
    "/etc/hosts",
    "/boot/",
    "/etc/systemd",
    "/etc/init",
)

WRITE_OPERATOR_PATTERNS: tuple[Pattern, ...] = (
    Pattern(r">>", "append redirection"),
    Pattern(r">", "output redirection"),
    Pattern(r"\btee\b", "tee"),
    Pattern(r"\bsed\s(?:[^;&|]*\s)?-i", "in-place sed"),
)

PERMISSION_PATTERNS: tuple[Pattern, ...] = (
    Pattern(r"\b(?:chmod|chown)\b[^;&|]*\s[\"']?/etc\b", "permission change on /etc directory"),
    Pattern(r"\bchmod(?:\s+-\S+)*\s+0+(?=\s|$)", "chmod removing all permissions (files will be inaccessible)"),
)

_PIPE_TARGET = r"\|\s*(?:sudo\s+(?:-\S+\s+)*)?(?:\S*/)?"

NETWORK_PATTERNS: tuple[Pattern, ...] = (
    Pattern(r"\b(?:curl|wget)\b.*" + _PIPE_TARGET + r"sh\b", "piping download directly to shell (dangerous)"),
    Pattern(r"\b(?:curl|wget)\b.*" + _PIPE_TARGET + r"bash\b", "piping download to bash"),
    Pattern(r"\b(?:curl|wget)\b.*" + _PIPE_TARGET + r"python[\d.]*\b", "piping download to python"),
    # The lookahead finds the /tmp target; the invocation is then consumed up to
    # its separator in one pass.
    Pattern(
        r"\b(?:curl|wget)\b(?=[^;&|]*(?:>|\s-[a-z]*o|\s--output=?)\s*/tmp/)[^;&|]*(?:&&|;)"
        r".*(?:\b(?:sh|bash|python[\d.]*)\b|/tmp/)",
        "download to temp file then execute",
    ),
    Pattern(
        r"\b(?:nc|netcat)\b(?=[^;&|]*\s-[a-z]*l)(?=[^;&|]*\s-[a-z]*e)",
        "netcat listener with command execution (remote shell backdoor)",
    ),
    Pattern(
        r"\bncat\b(?=[^;&|]*\s(?:-[a-z]*l|--listen))(?=[^;&|]*\s(?:-[a-z]*e|-c\b|--exec|--sh-exec))",
        "ncat listener with command execution (remote shell backdoor)",
    ),
)

# (raw)
FORK_BOMB_PATTERNS: tuple[Pattern, ...] = (
    Pattern(
        r"(?P<fn>:|[A-Za-z_][\w-]*)\s*\(\s*\)\s*\{\s*(?P=fn)\s*\|\s*(?P=fn)\s*&\s*;?\s*\}\s*;?\s*(?P=fn)",
        "fork bomb detected (will crash system)",
    ),
)

# (raw)
UNBOUNDED_LOOP_PATTERNS: tuple[Pattern, ...] = (
    Pattern(
        r"\bwhile\s+true\b|\bwhile\s+:(?=\s*;|\s+do\b)|\bwhile\s*\[\s*1\s*\]|\bfor\s*\(\(?\s*;\s*;\s*\)?\)",
        "infinite loop without delay (potential resource exhaustion)",
    ),
)

# (raw)
THROTTLE_PATTERNS: tuple[Pattern, ...] = (
    Pattern(r"\b(?:sleep|wait|read)\b", "throttling primitive"),
)

# (raw)
BULK_WRITE_PATTERNS: tuple[Pattern, ...] = (
    Pattern(
        r"\bdd\b(?=[^;&|]*\bbs=)(?=[^;&|]*\bcount=)(?=[^;&|]*\b(?:bs|count)=\d+[MGTmgt])",
        "large file creation with dd",
    ),
)

EXFILTRATION_PATTERNS: tuple[Pattern, ...] = (
    Pattern(r"\btar\b.*\|\s*(?:nc|ncat|netcat)\b", "archiving and sending over network"),
    # -d @file reads a file; -F name=@file or name=<file attaches one.
    Pattern(r"\bcurl\b[^;&|]*\s(?:-d|--data(?:-ascii|-binary|-urlencode)?)(?:\s+|=)[\"']?@", "uploading file via curl"),
    Pattern(r"\bcurl\b[^;&|]*\s(?:-f|--form)(?:\s+|=)[\"']?[^\s=;&|\"']+=[@<]", "uploading file via curl"),
    Pattern(r"\bcurl\b[^;&|]*\s--upload-file\b", "uploading file via curl"),
    Pattern(r"\bwget\b[^;&|]*--post-file", "uploading file via wget"),
    Pattern(r"\bscp\b[^;&|]*\s[\w.-]+@[\w.-]+:", "secure copy to remote host"),
    Pattern(r"\brsync\b[^;&|]*\s[\w.-]+@[\w.-]+:", "rsync to remote host"),
)

DEFAULT_BLACKLISTED_BINARIES: tuple[str, ...] = (
    "rm", "dd", "mkfs", "fdisk", "parted",
    "shred", "curl", "wget", "nc", "ncat",
)


# ── Catalogue ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RiskCatalogue:
    obfuscation: PatternTable
    privilege: PatternTable
    rm_invocations: PatternTable
    dangerous_paths: PatternTable
    file_deletion: PatternTable
    disk: PatternTable
    critical_files: tuple[str, ...]
    write_operators: PatternTable
    permissions: PatternTable
    network: PatternTable
    fork_bombs: PatternTable
    unbounded_loops: PatternTable
    throttles: PatternTable
    bulk_writes: PatternTable
    exfiltration: PatternTable
    max_backslashes: int = MAX_BACKSLASHES
    max_quotes: int = MAX_QUOTES


def build_catalogue() -> RiskCatalogue:
    return RiskCatalogue(
        obfuscation=PatternTable(OBFUSCATION_PATTERNS),
        privilege=PatternTable(PRIVILEGE_PATTERNS),
        rm_invocations=PatternTable(RM_INVOCATION_PATTERNS),
        dangerous_paths=PatternTable(DANGEROUS_PATH_PATTERNS),
        file_deletion=PatternTable(FILE_DELETION_PATTERNS),
        disk=PatternTable(DISK_PATTERNS),
        critical_files=CRITICAL_FILES,
        write_operators=PatternTable(WRITE_OPERATOR_PATTERNS),
        permissions=PatternTable(PERMISSION_PATTERNS),
        network=PatternTable(NETWORK_PATTERNS),
        fork_bombs=PatternTable(FORK_BOMB_PATTERNS),
        unbounded_loops=PatternTable(UNBOUNDED_LOOP_PATTERNS),
        throttles=PatternTable(THROTTLE_PATTERNS),
        bulk_writes=PatternTable(BULK_WRITE_PATTERNS),
        exfiltration=PatternTable(EXFILTRATION_PATTERNS),
    )


DEFAULT_CATALOGUE = build_catalogue()


# ── Severity tiers ───────────────────────────────────────────────────


@dataclass(frozen=True)
class SeverityPolicy:
    """Maps finding text to one level by keyword tiers.

    Critical keywords win outright. Otherwise High and Medium keywords raise
    the level monotonically; flagged findings that match no tier are Low.
    """

    critical: tuple[str, ...]
    high: tuple[str, ...]
    medium: tuple[str, ...]

    def classify(self, reasons: Sequence[str]) -> RiskLevel:
        if not reasons:
            return RiskLevel.NONE
        level = RiskLevel.NONE
        for reason in reasons:
            lower = reason.lower()
            if any(kw in lower for kw in self.critical):
                return RiskLevel.CRITICAL
            if level < RiskLevel.HIGH and any(kw in lower for kw in self.high):
                level = RiskLevel.HIGH
            if level < RiskLevel.MEDIUM and any(kw in lower for kw in self.medium):
                level = RiskLevel.MEDIUM
        return level if level > RiskLevel.NONE else RiskLevel.LOW


DEFAULT_SEVERITY_POLICY = SeverityPolicy(
    critical=("fork bomb", "disk", "partition", "/etc/passwd", "/etc/shadow", "crash system"),
    high=("destructive", "rm -rf", "overwrite", "erase", "unrecoverable"),
    medium=("sudo", "privilege", "critical"),
)
