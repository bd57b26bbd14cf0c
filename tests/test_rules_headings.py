"""Tests for heading rules."""
from mdlint.core.document import Document
from mdlint.core.linter.fixer import apply_fixes, collect_fixes
from mdlint.core.linter.rules import headings


def _check(rule, text, **settings):
    return rule.check(Document.from_text(text), settings)


def _fixed(rule, text, **settings):
    return apply_fixes(text, collect_fixes(_check(rule, text, **settings))).text


def _lines(violations):
    return [v.line for v in violations]


def test_heading_increment_reports_skip():
    violations = _check(headings.heading_increment, "# Title\n\n##### Skip\n")
    assert _lines(violations) == [3]
    assert violations[0].message == "Expected: h2; Actual: h5"


def test_heading_increment_compares_with_actual_previous_level():
    text = "# A\n\n### B\n\n#### C\n"
    assert _lines(_check(headings.heading_increment, text)) == [3]


def test_heading_increment_no_headings():
    assert _check(headings.heading_increment, "") == []
    assert _check(headings.heading_increment, "Just text\n") == []


def test_heading_style_consistent():
    violations = _check(headings.heading_style, "# A\n\nB\n===\n")
    assert _lines(violations) == [3]
    assert violations[0].message == "Expected: atx; Actual: setext"


def test_heading_style_explicit():
    assert _lines(_check(headings.heading_style, "# A #\n\n# B\n", style="atx_closed")) == [3]


def test_missing_space_after_hash():
    violations = _check(headings.no_missing_space_atx, "#Heading\n")
    assert _lines(violations) == [1]
    assert _fixed(headings.no_missing_space_atx, "#Heading\n") == "# Heading\n"


def test_missing_space_ignores_code():
    assert _check(headings.no_missing_space_atx, "```\n#include\n```\n") == []


def test_multiple_spaces_after_hash():
    assert _fixed(headings.no_multiple_space_atx, "#  Heading\n") == "# Heading\n"


def test_closed_atx_spacing():
    assert _fixed(headings.no_missing_space_closed_atx, "#Heading#\n") == "# Heading #\n"
    assert _fixed(headings.no_multiple_space_closed_atx, "#  Heading  #\n") == "# Heading #\n"


def test_blanks_around_headings():
    violations = _check(headings.blanks_around_headings, "# A\nText\n")
    assert _lines(violations) == [1]
    assert violations[0].message.endswith("Below")
    assert _check(headings.blanks_around_headings, "# A\n\nText\n") == []


def test_heading_start_left():
    assert _fixed(headings.heading_start_left, "  # Indented\n") == "# Indented\n"


def test_duplicate_heading():
    text = "# A\n\n## B\n\n## B\n"
    assert _lines(_check(headings.no_duplicate_heading, text)) == [5]


def test_duplicate_heading_siblings_only():
    text = "# A\n\n## Notes\n\n# B\n\n## Notes\n"
    assert _lines(_check(headings.no_duplicate_heading, text)) == [7]
    assert _check(headings.no_duplicate_heading, text, siblings_only=True) == []


def test_single_title():
    assert _lines(_check(headings.single_title, "# A\n\n# B\n")) == [3]


def test_single_title_counts_front_matter_title():
    text = "---\ntitle: T\n---\n# A\n"
    assert _lines(_check(headings.single_title, text)) == [4]


def test_trailing_punctuation():
    violations = _check(headings.no_trailing_punctuation, "# Hello.\n")
    assert violations[0].column == 8
    assert _fixed(headings.no_trailing_punctuation, "# Hello.\n") == "# Hello\n"
    assert _check(headings.no_trailing_punctuation, "# Hello?\n") == []


def test_emphasis_as_heading():
    assert _lines(_check(headings.no_emphasis_as_heading, "**Bold line**\n\nText\n")) == [1]
    assert _check(headings.no_emphasis_as_heading, "**Bold line.**\n") == []
    assert _check(headings.no_emphasis_as_heading, "Some **bold** text\n") == []


def test_first_line_heading():
    assert _lines(_check(headings.first_line_heading, "Text\n\n# H\n")) == [1]
    assert _check(headings.first_line_heading, "<!-- comment -->\n# H\n") == []
    assert _check(headings.first_line_heading, "---\ntitle: T\n---\nText\n") == []
