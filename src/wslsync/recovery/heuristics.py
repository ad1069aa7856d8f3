"""Heuristic classification for codes the catalog does not know.

Rules are evaluated in a fixed priority order; the first match wins.

Rules:
| Name               | Matches                                      | Category   |
|--------------------|----------------------------------------------|------------|
| config_read        | read_config action, JSON/INI parse errors    | config     |
| filename_collision | "already exists", "case insensitive", ...    | conflict   |
| invalid_argument   | ValueError (e.g. NUL byte in a path)         | validation |

Nothing here is retryable: a failure we could not identify precisely is
never retried automatically.
"""

from __future__ import annotations

import configparser
import json
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from wslsync.core.types import ErrorCategory, OperationAction, Severity
from wslsync.recovery.types import OperationContext


@dataclass(frozen=True)
class FailureFacts:
    """What the heuristics get to look at.

    Attributes:
        raw: The raw error object as received.
        message: Message extracted from the raw error (may be empty).
        context: Operation context of the failure.
    """

    raw: object
    message: str
    context: OperationContext


@dataclass(frozen=True)
class HeuristicRule:
    """A predicate/category pair."""

    name: str
    category: ErrorCategory
    matches: Callable[[FailureFacts], bool]
    severity: Severity = Severity.ERROR
    reason: str = ""


_COLLISION_PATTERN = re.compile(
    r"already exists|file exists|name collision|case[- ]?insensitive|conflict",
    re.IGNORECASE,
)

_CONFIG_PARSE_ERRORS: tuple[type[Exception], ...] = (
    json.JSONDecodeError,
    configparser.Error,
)


def _is_config_read(facts: FailureFacts) -> bool:
    return facts.context.action == OperationAction.READ_CONFIG or isinstance(
        facts.raw, _CONFIG_PARSE_ERRORS
    )


def _is_filename_collision(facts: FailureFacts) -> bool:
    return isinstance(facts.raw, FileExistsError) or bool(
        _COLLISION_PATTERN.search(facts.message)
    )


def _is_invalid_argument(facts: FailureFacts) -> bool:
    return isinstance(facts.raw, ValueError)


# Declarative rules, in priority order
HEURISTIC_RULES: tuple[HeuristicRule, ...] = (
    HeuristicRule(
        name="config_read",
        category=ErrorCategory.CONFIG,
        matches=_is_config_read,
        reason="Failure while reading configuration",
    ),
    HeuristicRule(
        name="filename_collision",
        category=ErrorCategory.CONFLICT,
        matches=_is_filename_collision,
        severity=Severity.WARNING,
        reason="Target name collides with an existing entry",
    ),
    HeuristicRule(
        name="invalid_argument",
        category=ErrorCategory.VALIDATION,
        matches=_is_invalid_argument,
        reason="Invalid path or argument",
    ),
)


class HeuristicMatcher:
    """Evaluates heuristic rules in order."""

    def __init__(self, rules: Sequence[HeuristicRule] | None = None) -> None:
        self._rules = tuple(HEURISTIC_RULES if rules is None else rules)

    @property
    def rules(self) -> tuple[HeuristicRule, ...]:
        return self._rules

    def match(self, facts: FailureFacts) -> HeuristicRule | None:
        """Return the first rule matching the facts, or None."""
        for rule in self._rules:
            if rule.matches(facts):
                return rule
        return None
