"""Lint engine - runs rules, applies directives and fixes."""
import asyncio
import fnmatch
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Optional, Sequence

from mdlint.core.document import Document, Event
from mdlint.core.errors import PositionError

from . import directives as directive_processor
from .config_merge import EffectiveConfig
from .fixer import apply_fixes, collect_fixes
from .models import LintReport, Violation
from .registry import RuleRegistry, default_registry
from .rule import Rule

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = (".md", ".markdown")


def _run_rule(rule: Rule, document: Document, settings: dict) -> tuple[list[Violation], Optional[str]]:
    """Run one rule; a failing rule yields a diagnostic instead of violations."""
    try:
        return rule.check(document, settings), None
    except PositionError:
        # Rule and parser disagree about the text; that is a bug, not bad input
        raise
    except Exception as e:
        logger.exception(f"Rule {rule.identifier} failed")
        return [], f"Rule {rule.identifier} failed: {e}"


def run_rules(
    document: Document,
    selection: Sequence[tuple[Rule, dict]],
    workers: Optional[int] = None,
) -> tuple[list[Violation], list[str]]:
    """
    Evaluate the selected rules against one document.

    Rules share nothing but the immutable document, so with ``workers`` > 1
    they run on a thread pool. Output is sorted by (line, column, rule)
    either way.
    """
    if workers and workers > 1 and len(selection) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda item: _run_rule(item[0], document, item[1]), selection))
    else:
        results = [_run_rule(rule, document, settings) for rule, settings in selection]

    violations: list[Violation] = []
    diagnostics: list[str] = []
    for found, error in results:
        violations.extend(found)
        if error:
            diagnostics.append(error)
    violations.sort(key=Violation.sort_key)
    return violations, diagnostics


def lint_text(
    text: str,
    config: Optional[EffectiveConfig] = None,
    registry: Optional[RuleRegistry] = None,
    *,
    path: str = "<string>",
    events: Optional[Iterable[Event]] = None,
    fix: bool = False,
    workers: Optional[int] = None,
) -> LintReport:
    """
    Lint markdown text.

    Args:
        text: The markdown content to lint
        config: Effective configuration (defaults: every rule enabled)
        registry: Rules to choose from (default: all built-in rules)
        path: Path for reporting (doesn't need to exist)
        events: Pre-parsed event stream; the built-in parser runs when omitted
        fix: Apply fixes and record the corrected text
        workers: Threads used to run rules

    Returns:
        LintReport with all violations found
    """
    config = config or EffectiveConfig()
    registry = default_registry() if registry is None else registry
    report = LintReport(path=path)
    report.diagnostics.extend(config.diagnostics)

    document = Document.from_text(text, front_matter=config.front_matter, events=events)
    selection, diagnostics = registry.select_enabled(config)
    report.diagnostics.extend(diagnostics)

    violations, failures = run_rules(document, selection, workers)
    report.diagnostics.extend(failures)

    if not config.no_inline_config:
        found, scan_diagnostics = directive_processor.scan(document)
        report.diagnostics.extend(scan_diagnostics)
        if found:
            settings = {rule.identifier: rule_settings for rule, rule_settings in selection}

            def rerun(rule_id: str, rule_settings: dict) -> list[Violation]:
                rule = registry.get(rule_id)
                if rule is None:
                    return []
                result, error = _run_rule(rule, document, rule_settings)
                if error:
                    report.diagnostics.append(error)
                return result

            violations, directive_diagnostics = directive_processor.apply(
                violations, found, registry, settings, rerun
            )
            report.diagnostics.extend(directive_diagnostics)

    for violation in violations:
        report.add_violation(violation)

    if fix:
        result = apply_fixes(text, collect_fixes(violations), index=document.index)
        report.fixed_text = result.text
        report.fixed = result.applied
        report.dropped = result.dropped
        for dropped in result.dropped:
            report.diagnostics.append(
                f"Fix for {dropped.rule} at {dropped.start_line}:{dropped.start_column} "
                f"dropped, it overlaps another fix"
            )

    logger.debug(f"{path}: {report.total_issues} violations ({report.fixable} fixable)")
    return report


async def lint_file(
    path: Path,
    config: Optional[EffectiveConfig] = None,
    registry: Optional[RuleRegistry] = None,
    fix: bool = False,
    workers: Optional[int] = None,
) -> LintReport:
    """
    Lint a markdown file.

    The file is read and written as UTF-8 bytes so line endings survive.

    Args:
        path: Path to the markdown file
        config: Effective configuration
        registry: Rules to choose from
        fix: If True, apply fixes and write back when the content changed
        workers: Threads used to run rules

    Returns:
        LintReport with all violations found
    """
    path = Path(path)
    content = path.read_bytes().decode("utf-8")

    report = await asyncio.to_thread(
        lint_text, content, config, registry, path=str(path), fix=fix, workers=workers
    )

    if fix and report.fixed_text is not None and report.fixed_text != content:
        path.write_bytes(report.fixed_text.encode("utf-8"))
        logger.info(f"Wrote {len(report.fixed)} fixes to {path}")

    return report


async def lint_paths(
    paths: Iterable[Path],
    config: Optional[EffectiveConfig] = None,
    registry: Optional[RuleRegistry] = None,
    fix: bool = False,
    workers: Optional[int] = None,
) -> list[LintReport]:
    """Lint several files concurrently; reports come back in input order."""
    registry = default_registry() if registry is None else registry

    async def one(path: Path) -> LintReport:
        try:
            return await lint_file(path, config, registry, fix=fix, workers=workers)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Could not read {path}: {e}")
            report = LintReport(path=str(path))
            report.diagnostics.append(f"Could not read file: {e}")
            return report

    return list(await asyncio.gather(*(one(Path(p)) for p in paths)))


def _ignored(path: Path, ignores: Sequence[str]) -> bool:
    text = path.as_posix()
    return any(
        fnmatch.fnmatch(text, pattern) or fnmatch.fnmatch(path.name, pattern)
        or fnmatch.fnmatch(text, f"*/{pattern}")
        for pattern in ignores
    )


def find_markdown_files(
    paths: Iterable[Path],
    globs: Sequence[str] = (),
    ignores: Sequence[str] = (),
) -> list[Path]:
    """
    Expand paths and globs into the markdown files to lint.

    Directories are searched recursively for ``*.md``/``*.markdown``;
    explicit files are kept whatever their suffix. Globs are evaluated
    relative to the current directory. Paths matching ``ignores``
    (fnmatch patterns) are dropped.
    """
    found: set[Path] = set()
    for path in map(Path, paths):
        if path.is_dir():
            for suffix in MARKDOWN_SUFFIXES:
                found.update(p for p in path.rglob(f"*{suffix}") if p.is_file())
        elif path.exists():
            found.add(path)
        else:
            logger.warning(f"Path not found: {path}")

    for pattern in globs:
        found.update(p for p in Path(".").glob(pattern) if p.is_file())

    return sorted(p for p in found if not _ignored(p, ignores))


def get_available_rules(registry: Optional[RuleRegistry] = None) -> dict[str, str]:
    """
    Get available rules with descriptions.

    Returns:
        Dict mapping rule identifier to its one-line description
    """
    registry = default_registry() if registry is None else registry
    return {rule.identifier: rule.description for rule in registry}
