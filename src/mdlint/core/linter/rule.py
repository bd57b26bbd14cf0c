"""Rule capability shared by every check.

A rule is a plain generator function wrapped by the ``@rule`` decorator into
an immutable :class:`Rule` value. The function receives the document and the
rule's own settings mapping and yields violations. Anything it needs to track
across lines lives in local variables, so a Rule can be run concurrently and
repeatedly with identical results.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from mdlint.core.document import Document

from .models import Fix, Violation

logger = logging.getLogger(__name__)

RuleFunc = Callable[[Document, Mapping[str, Any]], Iterable[Violation]]


@dataclass(frozen=True)
class Rule:
    """One registered check."""
    identifier: str
    aliases: tuple[str, ...]
    tags: frozenset[str]
    fixable: bool
    func: RuleFunc = field(repr=False, compare=False)

    @property
    def description(self) -> str:
        return (self.func.__doc__ or "No description").strip().split('\n')[0].rstrip('.')

    @property
    def names(self) -> tuple[str, ...]:
        return (self.identifier, *self.aliases)

    def check(self, document: Document, settings: Mapping[str, Any] | None = None) -> list[Violation]:
        """Run the rule; output is sorted by (line, column)."""
        violations = list(self.func(document, settings or {}))
        violations.sort(key=Violation.sort_key)
        return violations

    def to_dict(self) -> dict:
        return {
            "id": self.identifier,
            "aliases": list(self.aliases),
            "tags": sorted(self.tags),
            "fixable": self.fixable,
            "description": self.description,
        }


def rule(identifier: str, *aliases: str, tags: Iterable[str] = (), fixable: bool = False):
    """Decorator turning a check function into a :class:`Rule`."""
    def wrap(func: RuleFunc) -> Rule:
        return Rule(
            identifier=identifier,
            aliases=tuple(aliases),
            tags=frozenset(tags),
            fixable=fixable,
            func=func,
        )
    return wrap


def _matches(value: Any, kind: type | tuple[type, ...]) -> bool:
    accepted = kind if isinstance(kind, tuple) else (kind,)
    if object in accepted:
        return True
    # bool is an int subclass; True is not a valid line length
    if isinstance(value, bool) and bool not in accepted:
        return False
    return isinstance(value, accepted)


def option(
    settings: Mapping[str, Any],
    key: str,
    default: Any,
    kind: type | tuple[type, ...] | None = None,
    choices: Iterable[Any] | None = None,
) -> Any:
    """
    Read one rule setting, falling back to ``default`` when it is malformed.

    Args:
        settings: The rule's settings mapping
        key: Setting name
        default: Value used when missing or invalid
        kind: Accepted type(s); inferred from ``default`` when omitted
        choices: Allowed values

    Returns:
        The configured value, or ``default``
    """
    if not isinstance(settings, Mapping) or key not in settings:
        return default
    value = settings[key]

    if kind is None:
        if isinstance(default, bool):
            kind = bool
        elif isinstance(default, int):
            kind = int
        elif isinstance(default, (list, tuple)):
            kind = (list, tuple)
        elif default is None:
            kind = object
        else:
            kind = type(default)

    if not _matches(value, kind) or (choices is not None and value not in choices):
        logger.warning(f"Ignoring invalid value {value!r} for setting '{key}', using {default!r}")
        return default
    return value


def fix_range(
    document: Document,
    start: int,
    end: int,
    replacement: str,
    description: str,
    rule_id: str,
) -> Fix:
    """Build a Fix from byte offsets of the document."""
    start_line, start_column = document.position(start)
    end_line, end_column = document.position(end)
    return Fix(
        start_line=start_line,
        start_column=start_column,
        end_line=end_line,
        end_column=end_column,
        replacement=replacement,
        description=description,
        rule=rule_id,
    )


def line_fix(
    document: Document,
    line: int,
    start_column: int,
    end_column: int,
    replacement: str,
    description: str,
    rule_id: str,
) -> Fix:
    """Build a Fix replacing columns of a single line."""
    return Fix(
        start_line=line,
        start_column=start_column,
        end_line=line,
        end_column=end_column,
        replacement=replacement,
        description=description,
        rule=rule_id,
    )
