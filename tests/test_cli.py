"""Tests for the mdlint command line."""
import json

import pytest

from mdlint.cli import EXIT_ERROR, EXIT_OK, EXIT_VIOLATIONS, build_parser, cli_fragment, main


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    for name in ("MDLINT_ROOT", "MDLINT_WORKERS", "MDLINT_FIX",
                 "MDLINT_NO_INLINE_CONFIG", "MDLINT_FRONT_MATTER"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_clean_file_exits_zero(workspace, capsys):
    (workspace / "doc.md").write_text("# Title\n\nText\n")
    assert main(["lint", "doc.md", "--no-color"]) == EXIT_OK
    assert "no violations" in capsys.readouterr().out


def test_violations_exit_one(workspace, capsys):
    (workspace / "doc.md").write_text("# Title\n\nText \n")
    assert main(["lint", "doc.md", "--no-color"]) == EXIT_VIOLATIONS
    out = capsys.readouterr().out
    assert "doc.md:3:5 MD009 Trailing spaces (1 chars) [fixable]" in out
    assert "1 violation (1 fixable)" in out


def test_disable_option(workspace):
    (workspace / "doc.md").write_text("# Title\n\nText \n")
    assert main(["lint", "doc.md", "--disable", "no-trailing-spaces"]) == EXIT_OK


def test_directory_argument_and_config_file(workspace):
    docs = workspace / "docs"
    docs.mkdir()
    (docs / "a.md").write_text("# Title\n\nText \n")
    (workspace / ".markdownlint.json").write_text('{"MD009": false}')
    assert main(["lint", "docs"]) == EXIT_OK


def test_json_format(workspace, capsys):
    (workspace / "doc.md").write_text("# Title\n\nText \n")
    main(["lint", "doc.md", "--format", "json"])
    (report,) = json.loads(capsys.readouterr().out)
    assert report["path"] == "doc.md"
    assert [v["rule"] for v in report["violations"]] == ["MD009"]


def test_markdown_format(workspace, capsys):
    (workspace / "doc.md").write_text("# Title\n\nText \n")
    main(["lint", "doc.md", "--format", "markdown"])
    out = capsys.readouterr().out
    assert "# Lint Report: doc.md" in out
    assert "MD009 (1 issue)" in out


def test_fix_rewrites_file_and_keeps_crlf(workspace):
    path = workspace / "doc.md"
    path.write_bytes(b"# T\r\n\r\nText \r\n")
    assert main(["lint", "doc.md", "--fix"]) == EXIT_OK
    assert path.read_bytes() == b"# T\r\n\r\nText\r\n"


def test_bad_config_exits_two(workspace, capsys):
    (workspace / "doc.md").write_text("# Title\n")
    (workspace / ".markdownlint.json").write_text("{bad")
    assert main(["lint", "doc.md"]) == EXIT_ERROR
    assert "Error:" in capsys.readouterr().err


def test_usage_error_exits_two(workspace):
    with pytest.raises(SystemExit) as excinfo:
        main(["lint", "--format", "xml"])
    assert excinfo.value.code == 2


def test_rules_command(capsys):
    assert main(["rules"]) == EXIT_OK
    out = capsys.readouterr().out
    assert "MD009 no-trailing-spaces (fixable)" in out
    assert "MD025 single-title/single-h1" in out


def test_cli_fragment():
    args = build_parser().parse_args(["lint", "--enable", "MD001", "--disable", "MD013", "--fix"])
    assert cli_fragment(args) == {"config": {"MD001": True, "MD013": False}, "fix": True}
    args = build_parser().parse_args(["lint"])
    assert cli_fragment(args) == {}
