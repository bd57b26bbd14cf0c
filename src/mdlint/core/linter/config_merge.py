"""
Configuration merging.

Fragments are plain mappings using the markdownlint-cli2 key names, ordered
least to most specific (parent directories first, command-line overrides
last). ``merge`` left-folds them into one :class:`EffectiveConfig`.
"""
import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

logger = logging.getLogger(__name__)

# Fragment key -> EffectiveConfig field
SCALAR_KEYS = {
    "fix": "fix",
    "frontMatter": "front_matter",
    "noInlineConfig": "no_inline_config",
    # Accepted and merged, but the CLI has no gitignore filtering, banner or progress output
    "gitignore": "gitignore",
    "noBanner": "no_banner",
    "noProgress": "no_progress",
}
LIST_KEYS = {
    "globs": "globs",
    "ignores": "ignores",
    "outputFormatters": "output_formatters",
}


@dataclass
class EffectiveConfig:
    """The single merged configuration used for one lint run."""
    rules: dict[str, Any] = field(default_factory=dict)
    fix: bool = False
    front_matter: Optional[str] = None
    gitignore: bool = False
    no_inline_config: bool = False
    no_banner: bool = False
    no_progress: bool = False
    globs: list[str] = field(default_factory=list)
    ignores: list[str] = field(default_factory=list)
    output_formatters: list[Any] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list, compare=False)

    @property
    def default_enabled(self) -> bool:
        value = self.rules.get("default", True)
        return value if isinstance(value, bool) else True

    def to_fragment(self) -> dict[str, Any]:
        """This configuration as a fragment, so merged results can be merged again."""
        fragment: dict[str, Any] = {"config": copy.deepcopy(self.rules)}
        for key, name in SCALAR_KEYS.items():
            value = getattr(self, name)
            if value is not None:
                fragment[key] = value
        for key, name in LIST_KEYS.items():
            fragment[key] = list(getattr(self, name))
        return fragment

    def to_dict(self) -> dict:
        return {
            "config": self.rules,
            "fix": self.fix,
            "front_matter": self.front_matter,
            "gitignore": self.gitignore,
            "no_inline_config": self.no_inline_config,
            "no_banner": self.no_banner,
            "no_progress": self.no_progress,
            "globs": self.globs,
            "ignores": self.ignores,
            "output_formatters": self.output_formatters,
        }


Fragment = Union[Mapping[str, Any], EffectiveConfig]


def combine_rule(earlier: Any, later: Any) -> Any:
    """
    Combine two values for the same rule key.

    ``false`` always wins. A settings mapping replaces a boolean and is
    merged key-wise, one level deep, into an earlier mapping. ``true``
    after a mapping keeps the mapping, which already means enabled.
    """
    if later is False:
        return False
    if isinstance(later, Mapping):
        if isinstance(earlier, Mapping):
            merged = dict(earlier)
            merged.update(later)
            return merged
        return dict(later)
    if later is True and isinstance(earlier, Mapping):
        return dict(earlier)
    return later


def combine_rules(earlier: Mapping[str, Any], later: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(earlier)
    for key, value in later.items():
        if key in result:
            result[key] = combine_rule(result[key], value)
        else:
            result[key] = dict(value) if isinstance(value, Mapping) else value
    return result


def combine(result: EffectiveConfig, fragment: Fragment) -> EffectiveConfig:
    """Fold one fragment into ``result``, returning a new EffectiveConfig."""
    if isinstance(fragment, EffectiveConfig):
        fragment = fragment.to_fragment()
    merged = copy.deepcopy(result)

    for key, value in fragment.items():
        if key == "config":
            if isinstance(value, Mapping):
                merged.rules = combine_rules(merged.rules, value)
            else:
                merged.diagnostics.append(f"Ignoring 'config': expected an object, got {value!r}")
        elif key in SCALAR_KEYS:
            if value is not None:
                setattr(merged, SCALAR_KEYS[key], value)
        elif key in LIST_KEYS:
            if isinstance(value, (list, tuple)):
                getattr(merged, LIST_KEYS[key]).extend(value)
            else:
                merged.diagnostics.append(f"Ignoring '{key}': expected a list, got {value!r}")
        elif key in ("$schema", "customRules", "markdownItPlugins", "modulePaths"):
            continue
        else:
            merged.diagnostics.append(f"Unknown configuration key '{key}'")

    return merged


def merge(fragments: Iterable[Fragment]) -> EffectiveConfig:
    """
    Merge configuration fragments, least specific first.

    Scalars in a later fragment overwrite earlier ones when present, list
    fields are concatenated in order without de-duplication, and rule
    settings combine through :func:`combine_rule`.

    Args:
        fragments: Partial configurations, command-line overrides last

    Returns:
        The effective configuration
    """
    result = EffectiveConfig()
    seen = 0
    for fragment in fragments:
        result = combine(result, fragment)
        seen += 1

    for message in result.diagnostics:
        logger.warning(message)
    logger.debug(f"Merged {seen} configuration fragments")
    return result
