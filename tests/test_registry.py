"""Tests for the rule registry and rule selection."""
import pytest

from mdlint.core.linter.config_merge import EffectiveConfig, merge
from mdlint.core.linter.registry import RuleRegistry, default_registry
from mdlint.core.linter.rules import RULES, whitespace


def _ids(selection):
    return [rule.identifier for rule, _ in selection]


def test_default_registry_holds_every_builtin_rule():
    registry = default_registry()
    assert len(registry) == 45
    assert [rule.identifier for rule in registry] == sorted(RULES)


def test_resolve_identifier_alias_and_tag():
    registry = default_registry()
    assert registry.resolve("md009") == ["MD009"]
    assert registry.resolve("no-trailing-spaces") == ["MD009"]
    assert registry.resolve("SINGLE-H1") == ["MD025"]
    assert registry.resolve("table") == ["MD055", "MD056", "MD058"]
    assert registry.resolve("table", tags=False) == []
    assert registry.resolve("nonsense") == []


def test_get_and_contains():
    registry = default_registry()
    assert registry.get("ul-style").identifier == "MD004"
    assert registry.get("headings") is None
    assert "MD013" in registry
    assert "line-length" in registry
    assert "headings" not in registry


def test_is_tag():
    registry = default_registry()
    assert registry.is_tag("whitespace")
    assert not registry.is_tag("MD009")
    assert not registry.is_tag("unknown")
    assert "headings" in registry.tags


def test_duplicate_registration_rejected():
    registry = RuleRegistry([whitespace.no_trailing_spaces])
    with pytest.raises(ValueError):
        registry.register(whitespace.no_trailing_spaces)


def test_subset():
    registry = default_registry()
    assert len(registry.subset(["headings"])) == 13
    assert [r.identifier for r in registry.subset(["MD047", "no-hard-tabs"])] == ["MD010", "MD047"]
    assert len(registry.subset([])) == 0


def test_everything_enabled_by_default():
    registry = default_registry()
    selection, diagnostics = registry.select_enabled({})
    assert len(selection) == 45
    assert diagnostics == []
    assert all(settings == {} for _, settings in selection)


def test_default_false_with_settings_object():
    registry = default_registry()
    selection, _ = registry.select_enabled({"default": False, "MD013": {"line_length": 100}})
    assert _ids(selection) == ["MD013"]
    assert selection[0][1] == {"line_length": 100}


def test_rule_key_beats_tag_regardless_of_order():
    registry = default_registry()
    selection, _ = registry.select_enabled({"MD009": True, "whitespace": False})
    ids = _ids(selection)
    assert "MD009" in ids
    assert "MD010" not in ids

    selection, _ = registry.select_enabled({"whitespace": True, "MD009": False, "default": False})
    ids = _ids(selection)
    assert "MD009" not in ids
    assert "MD010" in ids


def test_alias_keys_select_rules():
    registry = default_registry()
    selection, _ = registry.select_enabled({"default": False, "line-length": {"line_length": 60}})
    assert _ids(selection) == ["MD013"]


def test_settings_under_id_and_alias_merge():
    registry = default_registry()
    config = merge([
        {"config": {"MD013": {"line_length": 5}}},
        {"config": {"line-length": {"strict": True}}},
    ])
    selection, _ = registry.select_enabled(config)
    (settings,) = [s for rule, s in selection if rule.identifier == "MD013"]
    assert settings == {"line_length": 5, "strict": True}


def test_invalid_entries_become_diagnostics():
    registry = default_registry()
    selection, diagnostics = registry.select_enabled({"bogus": True, "MD009": 3, "default": "yes"})
    assert len(selection) == 45
    assert "Unknown rule or tag 'bogus' in configuration" in diagnostics
    assert any("'MD009'" in message for message in diagnostics)
    assert any("'default'" in message for message in diagnostics)


def test_select_from_effective_config():
    registry = default_registry()
    config = EffectiveConfig(rules={"default": False, "MD001": True})
    selection, _ = registry.select_enabled(config)
    assert _ids(selection) == ["MD001"]
