"""Rule registry and per-configuration rule selection."""
import logging
from collections.abc import Mapping
from typing import Any, Iterable, Iterator, Optional

from .rule import Rule

logger = logging.getLogger(__name__)

RESERVED_KEYS = frozenset({"default", "extends", "$schema"})


class RuleRegistry:
    """
    Owned mapping of rule identifier -> Rule.

    Built explicitly and passed into the pipeline, so tests can use a
    registry holding only the rules they care about.
    """

    def __init__(self, rules: Iterable[Rule] = ()):
        self._rules: dict[str, Rule] = {}
        for rule in rules:
            self.register(rule)

    def register(self, rule: Rule) -> None:
        key = rule.identifier.upper()
        if key in self._rules:
            raise ValueError(f"Rule {rule.identifier} is already registered")
        self._rules[key] = rule

    def get(self, identifier: str) -> Optional[Rule]:
        """Look up a rule by identifier or alias."""
        ids = self.resolve(identifier, tags=False)
        return self._rules[ids[0]] if ids else None

    def resolve(self, name: str, tags: bool = True) -> list[str]:
        """
        Map a configuration or directive name to rule identifiers.

        Identifiers and aliases name one rule; a tag names every rule
        carrying it. Matching is case-insensitive. Unknown names resolve
        to an empty list.
        """
        key = name.upper()
        if key in self._rules:
            return [key]
        lowered = name.lower()
        for identifier, rule in self._rules.items():
            if lowered in rule.aliases:
                return [identifier]
        if not tags:
            return []
        return [identifier for identifier, rule in sorted(self._rules.items()) if lowered in rule.tags]

    def is_tag(self, name: str) -> bool:
        key = name.upper()
        if key in self._rules or any(name.lower() in r.aliases for r in self._rules.values()):
            return False
        return any(name.lower() in r.tags for r in self._rules.values())

    @property
    def tags(self) -> list[str]:
        return sorted({tag for rule in self._rules.values() for tag in rule.tags})

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules[k] for k in sorted(self._rules))

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and bool(self.resolve(name, tags=False))

    def subset(self, names: Iterable[str]) -> "RuleRegistry":
        """A new registry holding the rules ``names`` resolve to."""
        chosen: set[str] = set()
        for name in names:
            chosen.update(self.resolve(name))
        return RuleRegistry(self._rules[k] for k in sorted(chosen))

    def select_enabled(self, config: Any) -> tuple[list[tuple[Rule, dict]], list[str]]:
        """
        Pick the rules a configuration enables, with their settings.

        Args:
            config: An ``EffectiveConfig`` or a bare rule tree mapping

        Returns:
            ``(selection, diagnostics)``: the ``(Rule, settings)`` pairs in
            identifier order and warnings about keys that were ignored
        """
        tree = getattr(config, "rules", config) or {}
        diagnostics: list[str] = []

        default = tree.get("default", True)
        if not isinstance(default, bool):
            diagnostics.append(f"Invalid value {default!r} for 'default', expected true or false")
            default = True

        enabled = {identifier: default for identifier in self._rules}
        settings: dict[str, dict] = {}

        def apply(ids: list[str], key: str, value: Any) -> None:
            if isinstance(value, bool):
                for identifier in ids:
                    enabled[identifier] = value
            elif isinstance(value, Mapping):
                # Settings given under an id and an alias merge one level deep
                for identifier in ids:
                    enabled[identifier] = True
                    settings[identifier] = {**settings.get(identifier, {}), **value}
            else:
                diagnostics.append(
                    f"Invalid value {value!r} for rule '{key}', expected true, false or a settings object"
                )

        rule_keys = []
        for key, value in tree.items():
            if key in RESERVED_KEYS:
                continue
            if self.is_tag(key):
                apply(self.resolve(key), key, value)
            elif self.resolve(key, tags=False):
                rule_keys.append((key, value))
            else:
                diagnostics.append(f"Unknown rule or tag '{key}' in configuration")

        # Rule keys are more specific than tags, so they are applied last
        for key, value in rule_keys:
            apply(self.resolve(key, tags=False), key, value)

        for message in diagnostics:
            logger.warning(message)

        selection = [
            (self._rules[identifier], settings.get(identifier, {}))
            for identifier in sorted(self._rules)
            if enabled[identifier]
        ]
        return selection, diagnostics


def default_registry() -> RuleRegistry:
    """A fresh registry holding every built-in rule."""
    from .rules import RULES

    return RuleRegistry(RULES.values())
