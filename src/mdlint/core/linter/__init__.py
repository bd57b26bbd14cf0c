"""Markdown linter: rules, registry, configuration merging, directives and fixes."""
from .config_merge import EffectiveConfig, merge
from .engine import find_markdown_files, get_available_rules, lint_file, lint_paths, lint_text
from .fixer import apply_fixes, collect_fixes
from .models import Fix, FixResult, LintReport, Violation
from .registry import RuleRegistry, default_registry
from .rule import Rule, rule

__all__ = [
    "EffectiveConfig",
    "merge",
    "lint_text",
    "lint_file",
    "lint_paths",
    "find_markdown_files",
    "get_available_rules",
    "apply_fixes",
    "collect_fixes",
    "Fix",
    "FixResult",
    "LintReport",
    "Violation",
    "RuleRegistry",
    "default_registry",
    "Rule",
    "rule",
]
