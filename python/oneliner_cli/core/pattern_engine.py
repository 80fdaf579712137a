"""Ordered regex tables for the command risk detectors."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Sequence


@dataclass(frozen=True)
class Pattern:
    regex: str
    description: str


@dataclass(frozen=True)
class PatternMatch:
    pattern: Pattern
    match: str
    start: int
    end: int


class PatternTable:
    """Immutable (pattern, description) table, compiled once, scanned in order."""

    def __init__(self, patterns: Sequence[Pattern]):
        self._entries: tuple[tuple[Pattern, re.Pattern], ...] = tuple(
            (p, self._compile(p.regex)) for p in patterns
        )

    def __iter__(self) -> Iterator[Pattern]:
        return (p for p, _ in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def first(self, text: str, pos: int = 0, endpos: int | None = None) -> PatternMatch | None:
        """Return the first pattern (in table order) that matches *text*."""
        end = len(text) if endpos is None else endpos
        for pattern, compiled in self._entries:
            m = compiled.search(text, pos, end)
            if m is not None:
                return PatternMatch(pattern=pattern, match=m.group(0), start=m.start(), end=m.end())
        return None

    def scan(self, text: str) -> list[PatternMatch]:
        """One match per pattern that fires, in table order."""
        matches: list[PatternMatch] = []
        for pattern, compiled in self._entries:
            m = compiled.search(text)
            if m is not None:
                matches.append(PatternMatch(pattern=pattern, match=m.group(0), start=m.start(), end=m.end()))
        return matches

    def scan_all(self, text: str) -> list[PatternMatch]:
        """Every occurrence of every pattern, in table order."""
        matches: list[PatternMatch] = []
        for pattern, compiled in self._entries:
            for m in compiled.finditer(text):
                matches.append(PatternMatch(pattern=pattern, match=m.group(0), start=m.start(), end=m.end()))
        return matches

    def descriptions(self, text: str) -> list[str]:
        return [m.pattern.description for m in self.scan(text)]

    def has_matches(self, text: str) -> bool:
        return self.first(text) is not None

    # ------------------------------------------------------------------

    @staticmethod
    def _compile(regex_str: str) -> re.Pattern:
        flags = 0
        pattern = regex_str
        if pattern.startswith("(?i)"):
            flags |= re.IGNORECASE
            pattern = pattern[4:]
        return re.compile(pattern, flags)
