"""Report formatters: terminal (rich), JSON and a markdown review report."""
import io
import json
from typing import Iterable

from rich.console import Console
from rich.text import Text

from .models import LintReport


def format_default(reports: Iterable[LintReport], color: bool = True) -> str:
    """``path:line:column MD### message`` lines followed by a summary."""
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        force_terminal=color,
        color_system="standard" if color else None,
        highlight=False,
        soft_wrap=True,
    )

    files = 0
    total = 0
    fixable = 0
    for report in reports:
        files += 1
        total += report.total_issues
        fixable += report.fixable
        for violation in report.violations:
            line = Text()
            line.append(f"{report.path}:{violation.line}:{violation.column}", style="bold")
            line.append(" ")
            line.append(violation.rule, style="red")
            line.append(f" {violation.message}")
            if violation.fixable:
                line.append(" [fixable]", style="green")
            console.print(line)
        for message in report.diagnostics:
            console.print(Text(f"{report.path}: warning: {message}", style="yellow"))
        if report.fixed:
            console.print(Text(
                f"{report.path}: fixed {len(report.fixed)} ({', '.join(report.rules_fixed)})",
                style="green",
            ))

    summary = Text(f"Linted {files} file{'s' if files != 1 else ''}: ")
    if total:
        summary.append(f"{total} violation{'s' if total != 1 else ''}", style="bold red")
        summary.append(f" ({fixable} fixable)")
    else:
        summary.append("no violations", style="bold green")
    console.print(summary)
    return buffer.getvalue()


def format_json(reports: Iterable[LintReport]) -> str:
    return json.dumps([report.to_dict() for report in reports], indent=2)


def format_markdown(report: LintReport, title: str | None = None) -> str:
    """
    Markdown review report listing violations grouped by rule.

    Args:
        report: Report for one file
        title: Heading text (default: the report path)
    """
    lines = [
        f"# Lint Report: {title or report.path}",
        "",
        f"**Source:** `{report.path}`",
        f"**Total issues:** {report.total_issues}",
        f"**Fixable:** {report.fixable}",
        "",
        "---",
        "",
    ]

    by_rule: dict[str, list] = {}
    for violation in report.violations:
        by_rule.setdefault(violation.rule, []).append(violation)

    for rule_id, violations in sorted(by_rule.items()):
        marker = "✅" if all(v.fixable for v in violations) else "⚠️"
        count = len(violations)
        lines.append(f"## {marker} {rule_id} ({count} issue{'s' if count != 1 else ''})")
        lines.append("")
        for violation in violations:
            message = violation.message
            if len(message) > 120:
                message = message[:120] + "..."
            lines.append(f"- **Line {violation.line}:{violation.column}**: {message}")
        lines.append("")

    if report.diagnostics:
        lines.append("## Diagnostics")
        lines.append("")
        lines.extend(f"- {message}" for message in report.diagnostics)
        lines.append("")

    return "\n".join(lines)
