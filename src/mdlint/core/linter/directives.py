"""
Inline directives.

Documents can switch rules off and on, or reconfigure them, with HTML
comments such as ``<!-- markdownlint-disable MD013 -->``. ``scan`` finds the
directives once per document and ``apply`` filters the violations a lint
pass produced.

Resolution at a line: file-level state (``disable-file``/``enable-file``)
first, then line-scoped state where the most recent directive wins, then
``disable-line``/``disable-next-line`` which always suppress their single
line.
"""
import json
import logging
import re
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from mdlint.core.document import Document

from .config_merge import combine_rule
from .models import Violation
from .registry import RuleRegistry
from .rules.common import covered, inline_ranges

logger = logging.getLogger(__name__)

DIRECTIVE_RE = re.compile(
    r'<!--\s*markdownlint-(disable-next-line|disable-line|disable-file|enable-file'
    r'|configure-file|disable|enable|capture|restore)(?![\w-])(.*?)-->'
)
ACTIONS = (
    "disable", "enable", "disable-line", "disable-next-line", "disable-file",
    "enable-file", "capture", "restore", "configure-file",
)

Rerun = Callable[[str, dict], list[Violation]]


@dataclass(frozen=True)
class Directive:
    """One control comment found in a document."""
    line: int
    column: int
    action: str
    names: tuple[str, ...] = ()
    settings: Optional[dict] = field(default=None, hash=False)


def scan(doc: Document) -> tuple[list[Directive], list[str]]:
    """
    Find every directive, in document order.

    Comments inside code blocks, code spans and front matter are ordinary
    text and are skipped.

    Returns:
        ``(directives, diagnostics)``
    """
    directives: list[Directive] = []
    diagnostics: list[str] = []
    spans = inline_ranges(doc, "code_span")

    for number, text in doc.lines():
        if "markdownlint-" not in text:
            continue
        if number in doc.code_lines or doc.is_line_in_front_matter(number):
            continue
        line_start = doc.line_offset(number)
        for match in DIRECTIVE_RE.finditer(text):
            if covered(spans, line_start + len(text[:match.start()].encode("utf-8"))):
                continue
            action = match.group(1)
            payload = match.group(2).strip()
            column = match.start() + 1

            if action == "configure-file":
                try:
                    settings = json.loads(payload) if payload else {}
                except json.JSONDecodeError as e:
                    diagnostics.append(f"Line {number}: invalid configure-file payload ({e.msg})")
                    continue
                if not isinstance(settings, dict):
                    diagnostics.append(f"Line {number}: configure-file payload must be an object")
                    continue
                directives.append(Directive(number, column, action, settings=settings))
            else:
                directives.append(Directive(number, column, action, tuple(payload.split())))

    for message in diagnostics:
        logger.warning(message)
    return directives, diagnostics


@dataclass
class _State:
    """Enabled state: a default for every rule plus per-rule exceptions."""
    default: bool = True
    overrides: dict[str, bool] = field(default_factory=dict)

    def enabled(self, rule_id: str) -> bool:
        return self.overrides.get(rule_id, self.default)

    def set(self, ids: Optional[list[str]], value: bool) -> None:
        if ids is None:
            self.default = value
            self.overrides = {}
        else:
            for rule_id in ids:
                self.overrides[rule_id] = value

    def copy(self) -> "_State":
        return _State(self.default, dict(self.overrides))


class DirectiveFilter:
    """Answers whether a rule is enabled at a line, given a document's directives."""

    def __init__(self, directives: Iterable[Directive], registry: Optional[RuleRegistry] = None):
        self.registry = registry
        self.diagnostics: list[str] = []
        ordered = sorted(directives, key=lambda d: (d.line, d.column))

        file_state = _State()
        for directive in ordered:
            if directive.action in ("disable-file", "enable-file"):
                file_state.set(self._ids(directive), directive.action == "enable-file")

        state = file_state.copy()
        stack: list[_State] = []
        self._lines: list[int] = [0]
        self._states: list[_State] = [state.copy()]
        self._single: dict[int, _State] = {}

        for directive in ordered:
            action = directive.action
            if action in ("disable", "enable"):
                state.set(self._ids(directive), action == "enable")
            elif action == "capture":
                stack.append(state.copy())
            elif action == "restore":
                state = stack.pop() if stack else file_state.copy()
            elif action in ("disable-line", "disable-next-line"):
                target = directive.line + (1 if action == "disable-next-line" else 0)
                single = self._single.setdefault(target, _State())
                single.set(self._ids(directive), False)
                continue
            else:
                continue
            if self._lines[-1] == directive.line:
                self._states[-1] = state.copy()
            else:
                self._lines.append(directive.line)
                self._states.append(state.copy())

    def _ids(self, directive: Directive) -> Optional[list[str]]:
        if not directive.names:
            return None
        ids: list[str] = []
        for name in directive.names:
            if self.registry is None:
                ids.append(name.upper())
                continue
            resolved = self.registry.resolve(name)
            if not resolved:
                self.diagnostics.append(f"Line {directive.line}: unknown rule or tag '{name}' in directive")
            ids.extend(resolved)
        return ids

    def enabled(self, rule_id: str, line: int) -> bool:
        single = self._single.get(line)
        if single is not None and not single.enabled(rule_id):
            return False
        k = bisect_right(self._lines, line) - 1
        return self._states[k].enabled(rule_id)


def _configure_scopes(
    directives: Iterable[Directive],
    registry: Optional[RuleRegistry],
    diagnostics: list[str],
) -> list[tuple[str, int, Optional[int], Any]]:
    """
    ``(rule_id, first_line, last_line or None, value)`` per rule a
    configure-file directive names.

    A rule's scope ends on the line before the next configure-file that
    names the same rule.
    """
    configures = sorted((d for d in directives if d.action == "configure-file"),
                        key=lambda d: (d.line, d.column))
    entries: list[tuple[str, int, Any]] = []
    for directive in configures:
        for name, value in (directive.settings or {}).items():
            if name == "default":
                continue
            ids = registry.resolve(name) if registry is not None else [name.upper()]
            if not ids:
                diagnostics.append(f"Line {directive.line}: unknown rule or tag '{name}' in configure-file")
                continue
            entries.extend((rule_id, directive.line, value) for rule_id in ids)

    scopes = []
    for k, (rule_id, first, value) in enumerate(entries):
        following = next((line for other, line, _ in entries[k + 1:] if other == rule_id), None)
        scopes.append((rule_id, first, None if following is None else following - 1, value))
    return scopes


def _reconfigure(
    violations: list[Violation],
    directives: list[Directive],
    registry: Optional[RuleRegistry],
    settings: dict[str, dict],
    rerun: Rerun,
    diagnostics: list[str],
) -> list[Violation]:
    """Swap in violations of rules re-run with configure-file settings for their scope."""
    result = list(violations)
    for rule_id, first, last, value in _configure_scopes(directives, registry, diagnostics):
        def in_scope(v: Violation) -> bool:
            return v.rule == rule_id and v.line >= first and (last is None or v.line <= last)

        result = [v for v in result if not in_scope(v)]
        combined = combine_rule(settings.get(rule_id, True), value)
        if combined is False:
            continue
        scoped_settings = dict(combined) if isinstance(combined, dict) else {}
        result.extend(v for v in rerun(rule_id, scoped_settings) if in_scope(v))
    return result


def apply(
    violations: Iterable[Violation],
    directives: list[Directive],
    registry: Optional[RuleRegistry] = None,
    settings: Optional[dict[str, dict]] = None,
    rerun: Optional[Rerun] = None,
) -> tuple[list[Violation], list[str]]:
    """
    Filter violations through a document's directives.

    Args:
        violations: Violations from the enabled rules
        directives: Output of :func:`scan`
        registry: Resolves rule aliases and tags named in directives
        settings: Effective settings per enabled rule id, for configure-file
        rerun: Re-runs one rule with given settings; without it configure-file
            directives are ignored

    Returns:
        ``(violations, diagnostics)``, violations sorted by (line, column, rule)
    """
    violations = list(violations)
    diagnostics: list[str] = []

    if rerun is not None and any(d.action == "configure-file" for d in directives):
        violations = _reconfigure(violations, directives, registry, settings or {}, rerun, diagnostics)

    state = DirectiveFilter(directives, registry)
    diagnostics.extend(state.diagnostics)
    kept = [v for v in violations if state.enabled(v.rule, v.line)]
    kept.sort(key=Violation.sort_key)

    for message in diagnostics:
        logger.warning(message)
    if len(kept) != len(violations):
        logger.debug(f"Directives suppressed {len(violations) - len(kept)} violations")
    return kept, diagnostics
