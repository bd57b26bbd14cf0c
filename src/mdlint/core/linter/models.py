"""Data models for the linter."""
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Fix:
    """
    A text replacement resolving one violation.

    The range is half-open, ``(start_line, start_column)`` inclusive to
    ``(end_line, end_column)`` exclusive, 1-based, and always refers to the
    text the rule was run on, never to already-fixed text.
    """
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    replacement: str
    description: str
    rule: str = ""

    @property
    def start(self) -> tuple[int, int]:
        return self.start_line, self.start_column

    @property
    def end(self) -> tuple[int, int]:
        return self.end_line, self.end_column

    def to_dict(self) -> dict:
        return {
            "rule": self.rule,
            "start_line": self.start_line,
            "start_column": self.start_column,
            "end_line": self.end_line,
            "end_column": self.end_column,
            "replacement": self.replacement,
            "description": self.description,
        }


@dataclass(frozen=True)
class Violation:
    """A single rule failure at a specific location."""
    rule: str
    line: int
    column: int
    message: str
    fix: Optional[Fix] = None

    @property
    def fixable(self) -> bool:
        return self.fix is not None

    def sort_key(self) -> tuple[int, int, str]:
        return self.line, self.column, self.rule

    def to_dict(self) -> dict:
        return {
            "rule": self.rule,
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "has_fix": self.fix is not None
        }


@dataclass
class FixResult:
    """Outcome of applying a batch of fixes to one text."""
    text: str
    applied: list[Fix] = field(default_factory=list)
    dropped: list[Fix] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.applied)


@dataclass
class LintReport:
    """Complete lint report for a document."""
    path: str
    total_issues: int = 0
    fixable: int = 0
    violations: list[Violation] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)
    fixed_text: Optional[str] = None
    fixed: list[Fix] = field(default_factory=list)
    dropped: list[Fix] = field(default_factory=list)

    def add_violation(self, violation: Violation) -> None:
        """Add a violation to the report and update counts."""
        self.violations.append(violation)
        self.total_issues += 1

        if violation.fixable:
            self.fixable += 1

    @property
    def rules_fixed(self) -> list[str]:
        return sorted({f.rule for f in self.fixed})

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "total_issues": self.total_issues,
            "fixable": self.fixable,
            "violations": [v.to_dict() for v in self.violations],
            "diagnostics": self.diagnostics,
            "fixed": [f.to_dict() for f in self.fixed],
            "dropped": [f.to_dict() for f in self.dropped]
        }
