"""Tests for the built-in markdown parser's event stream."""
from mdlint.core.document import Document
from mdlint.core.parser import parse


def _starts(text: str, tag: str):
    return [e for e in parse(text) if e.tag == tag and e.kind == "start"]


def _leaves(text: str, tag: str):
    return [e for e in parse(text) if e.tag == tag and e.kind == "leaf"]


def test_containers_come_in_balanced_pairs():
    text = "# Title\n\n> quote\n\n- a\n  - b\n\n| x | y |\n| - | - |\n| 1 | 2 |\n"
    depth = 0
    for event in parse(text):
        if event.kind == "start":
            depth += 1
        elif event.kind == "end":
            depth -= 1
        assert depth >= 0
    assert depth == 0


def test_atx_and_setext_headings():
    headings = _starts("# One\n\nTwo\n===\n\n### Three ###\n", "heading")
    assert [(h.attrs["level"], h.attrs["style"], h.attrs["text"]) for h in headings] == [
        (1, "atx", "One"),
        (1, "setext", "Two"),
        (3, "atx_closed", "Three"),
    ]


def test_lists_split_on_marker_type():
    lists = _starts("- a\n- b\n\n1. x\n2. y\n", "list")
    assert [l.attrs["ordered"] for l in lists] == [False, True]
    items = _starts("1. x\n2. y\n", "list_item")
    assert [i.attrs["number"] for i in items] == [1, 2]


def test_nested_list():
    text = "- a\n  - b\n- c\n"
    assert len(_starts(text, "list")) == 2
    assert len(_starts(text, "list_item")) == 3


def test_fenced_code_block_attributes():
    (block,) = _leaves("```py\ncode\n```\n", "code_block")
    assert block.attrs["style"] == "fenced"
    assert block.attrs["info"] == "py"
    assert block.attrs["closed"] is True
    assert (block.attrs["first_line"], block.attrs["last_line"]) == (1, 3)


def test_unclosed_fence_runs_to_end():
    (block,) = _leaves("```\ncode\nmore\n", "code_block")
    assert block.attrs["closed"] is False
    assert block.attrs["last_line"] == 3


def test_indented_code_block():
    (block,) = _leaves("Text\n\n    code\n", "code_block")
    assert block.attrs["style"] == "indented"


def test_blockquote_wraps_paragraph():
    events = parse("> quoted text\n")
    assert [(e.kind, e.tag) for e in events] == [
        ("start", "blockquote"),
        ("start", "paragraph"),
        ("end", "paragraph"),
        ("end", "blockquote"),
    ]


def test_table_rows_and_cells():
    text = "| a | b |\n| - | - |\n| 1 | 2 |\n"
    (table,) = _starts(text, "table")
    assert table.attrs["columns"] == 2
    rows = _starts(text, "table_row")
    assert [r.attrs["cells"] for r in rows] == [["a", "b"], ["-", "-"], ["1", "2"]]
    assert rows[1].attrs["delimiter"] is True


def test_inline_constructs_and_offsets():
    text = "Some `code` and [link](http://x) and **bold**.\n"
    doc = Document.from_text(text)
    leaves = {e.tag: e for e in doc.events() if e.kind == "leaf"}
    assert doc.slice(leaves["code_span"].start, leaves["code_span"].end) == "`code`"
    assert leaves["link"].attrs["url"] == "http://x"
    assert leaves["link"].attrs["text"] == "link"
    assert leaves["strong"].attrs["text"] == "bold"
    assert "emphasis" not in leaves


def test_offsets_are_utf8_bytes():
    (span,) = _leaves("é `x`\n", "code_span")
    assert span.start == 3


def test_html_comment_block():
    (block,) = _leaves("<!-- note\nstill note -->\n\nText\n", "html_block")
    assert block.attrs["first_line"] == 1
    assert "still note" in block.attrs["text"]


def test_front_matter_lines_are_skipped():
    events = parse("---\na: b\n---\nText\n", first_line=4)
    assert [e.tag for e in events if e.kind == "start"] == ["paragraph"]
