"""Built-in lint rules."""
from . import blockquote, code, headings, inline, lists, tables, whitespace

# Registry of all built-in rules, in identifier order
RULES = {
    # Headings
    "MD001": headings.heading_increment,
    "MD003": headings.heading_style,

    # Lists
    "MD004": lists.ul_style,
    "MD005": lists.list_indent,
    "MD007": lists.ul_indent,

    # Whitespace
    "MD009": whitespace.no_trailing_spaces,
    "MD010": whitespace.no_hard_tabs,

    "MD011": inline.no_reversed_links,
    "MD012": whitespace.no_multiple_blanks,
    "MD013": whitespace.line_length,
    "MD014": code.commands_show_output,

    # Heading shape
    "MD018": headings.no_missing_space_atx,
    "MD019": headings.no_multiple_space_atx,
    "MD020": headings.no_missing_space_closed_atx,
    "MD021": headings.no_multiple_space_closed_atx,
    "MD022": headings.blanks_around_headings,
    "MD023": headings.heading_start_left,
    "MD024": headings.no_duplicate_heading,
    "MD025": headings.single_title,
    "MD026": headings.no_trailing_punctuation,

    # Blockquotes
    "MD027": blockquote.no_multiple_space_blockquote,
    "MD028": blockquote.no_blanks_blockquote,

    "MD029": lists.ol_prefix,
    "MD030": lists.list_marker_space,
    "MD031": code.blanks_around_fences,
    "MD032": lists.blanks_around_lists,

    # Inline constructs
    "MD033": inline.no_inline_html,
    "MD034": inline.no_bare_urls,
    "MD035": inline.hr_style,
    "MD036": headings.no_emphasis_as_heading,
    "MD037": inline.no_space_in_emphasis,
    "MD038": inline.no_space_in_code,
    "MD039": inline.no_space_in_links,
    "MD040": code.fenced_code_language,
    "MD041": headings.first_line_heading,
    "MD042": inline.no_empty_links,
    "MD045": inline.no_alt_text,
    "MD046": code.code_block_style,
    "MD047": whitespace.single_trailing_newline,
    "MD048": code.code_fence_style,
    "MD049": inline.emphasis_style,
    "MD050": inline.strong_style,

    # Tables
    "MD055": tables.table_pipe_style,
    "MD056": tables.table_column_count,
    "MD058": tables.blanks_around_tables,
}

__all__ = ["RULES", "blockquote", "code", "headings", "inline", "lists", "tables", "whitespace"]
