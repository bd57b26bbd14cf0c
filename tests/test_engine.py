"""Tests for the lint engine."""
import asyncio

import pytest

from mdlint.core.document import Document
from mdlint.core.errors import PositionError
from mdlint.core.linter.config_merge import EffectiveConfig, merge
from mdlint.core.linter.engine import (
    find_markdown_files,
    get_available_rules,
    lint_file,
    lint_paths,
    lint_text,
)
from mdlint.core.linter.models import Fix, Violation
from mdlint.core.linter.registry import RuleRegistry, default_registry
from mdlint.core.linter.rule import rule
from mdlint.core.linter.rules import headings

SAMPLE = """#Title

Some text with trailing spaces
and a	tab.
* one
- two
1. a
3. b


### Skipped level
```
code
```
Visit https://example.com now.
"""


def _run(coro):
    """Run async coroutine synchronously (avoids pytest-asyncio dep)."""
    return asyncio.run(coro)


@rule("MD900", tags=("test",))
def broken_rule(doc: Document, settings: dict):
    """Always fails."""
    raise RuntimeError("boom")
    yield


@rule("MD901", tags=("test",))
def out_of_range_rule(doc: Document, settings: dict):
    """Asks for a position past the end of the text."""
    yield Violation("MD901", *doc.position(len(doc.text) + 100), "never")


def _replace_first(rule_id, replacement):
    @rule(rule_id, tags=("test",), fixable=True)
    def check(doc: Document, settings: dict):
        """Rewrites the first character."""
        yield Violation(rule_id, 1, 1, "first", Fix(1, 1, 1, 2, replacement, "rewrite", rule_id))
    return check


def test_lint_is_deterministic():
    first = lint_text(SAMPLE)
    second = lint_text(SAMPLE)
    assert first.violations == second.violations
    keys = [v.sort_key() for v in first.violations]
    assert keys == sorted(keys)
    assert first.total_issues > 5


def test_worker_threads_do_not_change_output():
    inline = lint_text(SAMPLE)
    threaded = lint_text(SAMPLE, workers=4)
    assert threaded.violations == inline.violations


def test_heading_level_skip_scenario():
    registry = default_registry().subset(["MD001"])
    report = lint_text("# Title\n\n##### Skip\n", registry=registry)
    assert [(v.rule, v.line) for v in report.violations] == [("MD001", 3)]


def test_blank_line_run_scenario():
    registry = default_registry().subset(["MD012"])
    config = merge([{"config": {"MD012": {"maximum": 1}}}])
    report = lint_text("Intro\n\n\n\nBody\n", config, registry)
    assert [v.line for v in report.violations] == [3]


def test_empty_documents_are_valid():
    for text in ("", "\n"):
        report = lint_text(text)
        assert report.violations == []
        assert report.diagnostics == []


def test_failing_rule_becomes_diagnostic():
    registry = RuleRegistry([broken_rule, headings.heading_increment])
    report = lint_text("# A\n\n### B\n", registry=registry)
    assert [v.rule for v in report.violations] == ["MD001"]
    assert report.diagnostics == ["Rule MD900 failed: boom"]


def test_position_errors_propagate():
    with pytest.raises(PositionError):
        lint_text("text\n", registry=RuleRegistry([out_of_range_rule]))


def test_config_diagnostics_reach_the_report():
    config = merge([{"colour": True}, {"config": {"MD999": True}}])
    report = lint_text("# T\n", config)
    assert "Unknown configuration key 'colour'" in report.diagnostics
    assert "Unknown rule or tag 'MD999' in configuration" in report.diagnostics


def test_disabled_rules_do_not_run():
    config = merge([{"config": {"default": False, "MD047": True}}])
    report = lint_text("#Title", config)
    assert [v.rule for v in report.violations] == ["MD047"]


def test_supplied_events_replace_the_parser():
    registry = default_registry().subset(["MD001"])
    assert lint_text("# A\n\n### B\n", registry=registry, events=[]).violations == []


def test_fix_records_output():
    registry = default_registry().subset(["MD009", "MD047"])
    report = lint_text("# T\n\nText ", registry=registry, fix=True)
    assert report.fixed_text == "# T\n\nText\n"
    assert report.rules_fixed == ["MD009", "MD047"]
    assert report.dropped == []


def test_dropped_fix_is_reported():
    registry = RuleRegistry([_replace_first("MD902", "X"), _replace_first("MD903", "Y")])
    report = lint_text("abc\n", registry=registry, fix=True)
    assert report.fixed_text == "Xbc\n"
    assert [f.rule for f in report.dropped] == ["MD903"]
    assert any("MD903" in message and "dropped" in message for message in report.diagnostics)


def test_lint_file_fix_keeps_crlf(tmp_path):
    path = tmp_path / "doc.md"
    path.write_bytes(b"# T\r\n\r\nText \r\n")
    registry = default_registry().subset(["MD009"])

    report = _run(lint_file(path, registry=registry, fix=True))

    assert report.path == str(path)
    assert path.read_bytes() == b"# T\r\n\r\nText\r\n"


def test_lint_file_without_fix_leaves_file(tmp_path):
    path = tmp_path / "doc.md"
    path.write_text("Text \n")
    report = _run(lint_file(path, registry=default_registry().subset(["MD009"])))
    assert report.total_issues == 1
    assert path.read_text() == "Text \n"


def test_lint_paths_keeps_order_and_reports_unreadable(tmp_path):
    good = tmp_path / "good.md"
    good.write_text("# Good\n")
    missing = tmp_path / "missing.md"

    reports = _run(lint_paths([missing, good], EffectiveConfig()))

    assert [r.path for r in reports] == [str(missing), str(good)]
    assert "Could not read file" in reports[0].diagnostics[0]
    assert reports[1].violations == []


def test_find_markdown_files(tmp_path):
    (tmp_path / "a.md").write_text("a")
    (tmp_path / "notes.txt").write_text("n")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "b.markdown").write_text("b")
    vendor = tmp_path / "node_modules"
    vendor.mkdir()
    (vendor / "x.md").write_text("x")

    found = find_markdown_files([tmp_path], ignores=["node_modules/*"])
    assert found == sorted([tmp_path / "a.md", sub / "b.markdown"])

    explicit = find_markdown_files([tmp_path / "notes.txt", tmp_path / "gone.md"])
    assert explicit == [tmp_path / "notes.txt"]


def test_get_available_rules():
    rules = get_available_rules()
    assert len(rules) == 45
    assert rules["MD009"] == "Trailing spaces"
