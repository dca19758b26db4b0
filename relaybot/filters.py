"""Decides how a message is routed by a forward rule's text filters.

Patterns are compiled case-insensitively on every call. Evaluation keeps no
state and is thread-safe. An invalid pattern raises ``regex.error``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import regex


class FiltersMode(Enum):
    """Outcome of filtering a message's text."""

    OK = "ok"
    CHECK = "check"
    OTHER = "other"


@dataclass
class SubmatchRule:
    """Passes text when capture group ``group`` of ``regexp`` is one of ``match``."""

    regexp: str = ""
    group: int = 0
    match: list[str] = field(default_factory=list)


@dataclass
class ForwardRule:
    """Text filters of a forward rule."""

    exclude: str = ""
    include: str = ""
    include_submatch: list[SubmatchRule] = field(default_factory=list)


def _compile(pattern: str) -> regex.Pattern:
    return regex.compile("(?i)" + pattern)


def has_include_rules(rule: ForwardRule) -> bool:
    """True if the rule has an include pattern or a non-empty submatch pattern."""
    return bool(rule.include) or any(sub.regexp for sub in rule.include_submatch)


def evaluate(text: str, rule: ForwardRule) -> FiltersMode:
    """Return the filtering mode of ``text`` under ``rule``."""
    if not text:
        return FiltersMode.OTHER if has_include_rules(rule) else FiltersMode.OK

    if rule.exclude and _compile(rule.exclude).search(text):
        return FiltersMode.CHECK

    has_include = False

    if rule.include:
        has_include = True
        if _compile(rule.include).search(text):
            return FiltersMode.OK

    for sub in rule.include_submatch:
        if not sub.regexp:
            continue
        has_include = True
        pattern = _compile(sub.regexp)
        if sub.group > pattern.groups:
            continue
        for found in pattern.finditer(text):
            if (found.group(sub.group) or "") in sub.match:
                return FiltersMode.OK

    return FiltersMode.OTHER if has_include else FiltersMode.OK