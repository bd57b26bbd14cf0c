"""Tests for inline markdownlint directives."""
from mdlint.core.document import Document
from mdlint.core.linter.config_merge import EffectiveConfig
from mdlint.core.linter.directives import Directive, DirectiveFilter, scan
from mdlint.core.linter.engine import lint_text
from mdlint.core.linter.registry import default_registry

SCENARIO = (
    "x \n"
    "<!-- markdownlint-disable MD009 --> \n"
    "a \n"
    "b \n"
    "<!-- markdownlint-enable MD009 --> \n"
    "c \n"
)


def _lines(text, rules=("MD009",), **config):
    registry = default_registry().subset(rules)
    report = lint_text(text, EffectiveConfig(**config), registry)
    return [v.line for v in report.violations]


def test_disable_then_enable():
    assert _lines(SCENARIO) == [1, 5, 6]


def test_no_inline_config_ignores_directives():
    assert _lines(SCENARIO, no_inline_config=True) == [1, 2, 3, 4, 5, 6]


def test_disable_next_line():
    text = "<!-- markdownlint-disable-next-line MD009 -->\na \nb \n"
    assert _lines(text) == [3]


def test_disable_line():
    text = "a <!-- markdownlint-disable-line MD009 --> \nb \n"
    assert _lines(text) == [2]


def test_disable_all_rules():
    text = "<!-- markdownlint-disable -->\na \n<!-- markdownlint-enable -->\nb \n"
    assert _lines(text) == [4]


def test_names_can_be_aliases_or_tags():
    assert _lines("<!-- markdownlint-disable no-trailing-spaces -->\na \n") == []
    assert _lines("<!-- markdownlint-disable whitespace -->\na \n") == []


def test_capture_and_restore():
    text = (
        "<!-- markdownlint-disable MD009 -->\n"
        "<!-- markdownlint-capture -->\n"
        "<!-- markdownlint-enable MD009 -->\n"
        "a \n"
        "<!-- markdownlint-restore -->\n"
        "b \n"
    )
    assert _lines(text) == [4]


def test_disable_file_covers_whole_document():
    assert _lines("a \n<!-- markdownlint-disable-file MD009 -->\nb \n") == []


def test_configure_file_disables_from_its_line():
    text = "a \n<!-- markdownlint-configure-file {\"MD009\": false} -->\nb \n"
    assert _lines(text) == [1]


def test_configure_file_changes_settings():
    text = '<!-- markdownlint-configure-file {"MD013": {"line_length": 10}} -->\nthis line is too long\n'
    assert _lines(text, rules=("MD013",)) == [1, 2]
    assert _lines("this line is too long\n", rules=("MD013",)) == []


def test_configure_file_scopes_are_per_rule():
    text = (
        '<!-- markdownlint-configure-file {"MD013": {"line_length": 10}} -->\n'
        "this line is too long\n"
        '<!-- markdownlint-configure-file {"MD009": {"br_spaces": 3}} -->\n'
        "still too long here\n"
    )
    assert _lines(text, rules=("MD009", "MD013")) == [1, 2, 3, 4]


def test_configure_file_for_same_rule_replaces_earlier_one():
    text = (
        '<!-- markdownlint-configure-file {"line-length": {"line_length": 10}} -->\n'
        "this line is too long\n"
        '<!-- markdownlint-configure-file {"MD013": {"line_length": 200}} -->\n'
        "this line is too long\n"
    )
    assert _lines(text, rules=("MD013",)) == [1, 2]


def test_invalid_configure_payload_is_a_diagnostic():
    doc = Document.from_text("<!-- markdownlint-configure-file {bad} -->\n")
    directives, diagnostics = scan(doc)
    assert directives == []
    assert "invalid configure-file payload" in diagnostics[0]


def test_unknown_rule_in_directive_is_a_diagnostic():
    registry = default_registry().subset(["MD009"])
    report = lint_text("<!-- markdownlint-disable MD999 -->\na \n", EffectiveConfig(), registry)
    assert [v.line for v in report.violations] == [2]
    assert any("'MD999'" in message for message in report.diagnostics)


def test_directives_in_code_are_text():
    assert _lines("```\n<!-- markdownlint-disable MD009 -->\n```\na \n") == [4]
    assert _lines("`<!-- markdownlint-disable MD009 -->`\na \n") == [2]


def test_scan_reads_names_and_columns():
    doc = Document.from_text("Text <!-- markdownlint-disable MD001 MD002 -->\n")
    directives, _ = scan(doc)
    assert directives == [Directive(1, 6, "disable", ("MD001", "MD002"))]


def test_rule_directive_overrides_broad_disable():
    directives = [
        Directive(1, 1, "disable"),
        Directive(3, 1, "enable", ("MD009",)),
    ]
    state = DirectiveFilter(directives)
    assert not state.enabled("MD009", 2)
    assert state.enabled("MD009", 4)
    assert not state.enabled("MD010", 4)


def test_restore_without_capture_returns_to_file_state():
    directives = [
        Directive(1, 1, "disable-file", ("MD010",)),
        Directive(2, 1, "disable", ("MD009",)),
        Directive(3, 1, "restore"),
    ]
    state = DirectiveFilter(directives)
    assert not state.enabled("MD009", 2)
    assert state.enabled("MD009", 3)
    assert not state.enabled("MD010", 3)
