"""Tests for config file discovery, parsing and environment overrides."""
import json

import pytest

from mdlint.config import Config, discover, load_config, read_config_file, strip_jsonc
from mdlint.core.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("MDLINT_ROOT", "MDLINT_WORKERS", "MDLINT_FIX",
                 "MDLINT_NO_INLINE_CONFIG", "MDLINT_FRONT_MATTER"):
        monkeypatch.delenv(name, raising=False)


def test_strip_jsonc_comments_and_trailing_commas():
    text = '{\n  // comment\n  "a": 1, /* block */\n  "b": [1, 2,],\n}\n'
    assert json.loads(strip_jsonc(text)) == {"a": 1, "b": [1, 2]}


def test_strip_jsonc_keeps_strings():
    text = '{"url": "http://x//y", "s": "a /* b */ \\" c"}'
    assert json.loads(strip_jsonc(text)) == {"url": "http://x//y", "s": 'a /* b */ " c'}


def test_markdownlint_file_is_wrapped(tmp_path):
    path = tmp_path / ".markdownlint.json"
    path.write_text('{"MD013": false}')
    assert read_config_file(path) == {"config": {"MD013": False}}


def test_cli2_file_is_a_full_fragment(tmp_path):
    path = tmp_path / ".markdownlint-cli2.yaml"
    path.write_text("config:\n  MD013:\n    line_length: 100\nglobs:\n  - '*.md'\n")
    assert read_config_file(path) == {"config": {"MD013": {"line_length": 100}}, "globs": ["*.md"]}


def test_package_json_key(tmp_path):
    path = tmp_path / "package.json"
    path.write_text(json.dumps({"name": "x", "markdownlint-cli2": {"config": {"MD001": False}}}))
    assert read_config_file(path) == {"config": {"MD001": False}}


def test_empty_yaml_is_empty_fragment(tmp_path):
    path = tmp_path / ".markdownlint.yaml"
    path.write_text("")
    assert read_config_file(path) == {"config": {}}


def test_bad_json_raises_config_error(tmp_path):
    path = tmp_path / ".markdownlint.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError):
        read_config_file(path)


def test_non_object_raises_config_error(tmp_path):
    path = tmp_path / ".markdownlint.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ConfigError):
        read_config_file(path)


def test_missing_file_raises_config_error(tmp_path):
    with pytest.raises(ConfigError):
        read_config_file(tmp_path / ".markdownlint.json")


def test_discover_orders_parent_first(tmp_path):
    sub = tmp_path / "docs"
    sub.mkdir()
    (tmp_path / ".markdownlint.json").write_text('{"MD013": false}')
    (sub / ".markdownlint-cli2.jsonc").write_text('{"config": {"MD013": true}} // more specific')

    found = [(p, f) for p, f in discover(sub) if tmp_path.resolve() in p.parents]
    assert [p.name for p, _ in found] == [".markdownlint.json", ".markdownlint-cli2.jsonc"]


def test_discover_first_match_per_directory(tmp_path):
    (tmp_path / ".markdownlint-cli2.jsonc").write_text('{"config": {"MD001": false}}')
    (tmp_path / ".markdownlint.json").write_text('{"MD002": false}')
    found = [p for p, _ in discover(tmp_path) if tmp_path.resolve() in p.parents]
    assert [p.name for p in found] == [".markdownlint-cli2.jsonc"]


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("MDLINT_ROOT", str(tmp_path))
    monkeypatch.setenv("MDLINT_WORKERS", "4")
    monkeypatch.setenv("MDLINT_FIX", "yes")
    config = Config.load()
    assert config.root_dir == tmp_path
    assert config.workers == 4
    assert config.to_fragment() == {"fix": True}


def test_env_invalid_workers_ignored(monkeypatch):
    monkeypatch.setenv("MDLINT_WORKERS", "many")
    assert Config.load().workers is None


def test_load_config_order(tmp_path):
    (tmp_path / ".markdownlint.json").write_text('{"MD013": {"line_length": 100}}')
    explicit = tmp_path / "custom.yaml"
    explicit.write_text("MD013:\n  strict: true\n")

    effective, sources = load_config(
        tmp_path,
        config_path=explicit,
        overrides=[{"config": {"MD013": {"line_length": 120}}}],
        env=Config(fix=True),
    )
    assert effective.rules["MD013"] == {"line_length": 120, "strict": True}
    assert effective.fix is True
    assert sources[-1] == explicit
