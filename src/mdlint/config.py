"""Configuration loading: config files, environment overrides, command-line fragment."""
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from mdlint import __version__
from mdlint.core.errors import ConfigError
from mdlint.core.linter.config_merge import EffectiveConfig, merge

logger = logging.getLogger(__name__)

# One file per directory, first match wins
CONFIG_FILES = (
    ".markdownlint-cli2.jsonc",
    ".markdownlint-cli2.yaml",
    ".markdownlint-cli2.yml",
    ".markdownlint.jsonc",
    ".markdownlint.json",
    ".markdownlint.yaml",
    ".markdownlint.yml",
    "package.json",
)
PACKAGE_JSON_KEY = "markdownlint-cli2"
TRUTHY = ("true", "1", "yes")


def strip_jsonc(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments and trailing commas, leaving strings intact."""
    out: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            j = i + 1
            while j < n and text[j] != '"':
                j += 2 if text[j] == "\\" else 1
            out.append(text[i:j + 1])
            i = j + 1
        elif text.startswith("//", i):
            while i < n and text[i] != "\n":
                i += 1
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end < 0 else end + 2
        elif ch in "]}":
            # Drop a trailing comma before the closing bracket
            k = len(out) - 1
            while k >= 0 and out[k].isspace():
                k -= 1
            if k >= 0 and out[k] == ",":
                del out[k]
            out.append(ch)
            i += 1
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _parse(path: Path, content: str) -> Any:
    name = path.name
    try:
        if name.endswith((".yaml", ".yml")):
            return yaml.safe_load(content)
        return json.loads(strip_jsonc(content))
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e


def read_config_file(path: Path) -> dict[str, Any]:
    """
    Read one configuration file into a fragment.

    ``.markdownlint-cli2.*`` files and the ``markdownlint-cli2`` key of
    ``package.json`` are full fragments; any other file holds a bare rule
    tree and is wrapped as ``{"config": ...}``.

    Raises:
        ConfigError: The file cannot be read or parsed
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e

    data = _parse(path, content)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config structure in {path}: expected an object")

    if path.name == "package.json":
        fragment = data.get(PACKAGE_JSON_KEY, {})
        if not isinstance(fragment, dict):
            raise ConfigError(f"Invalid '{PACKAGE_JSON_KEY}' entry in {path}")
        return fragment
    if path.name.startswith(".markdownlint-cli2."):
        return data
    return {"config": data}


def discover(start_dir: Path) -> list[tuple[Path, dict[str, Any]]]:
    """
    Find configuration files from ``start_dir`` up to the filesystem root.

    Returns:
        ``(path, fragment)`` pairs ordered least to most specific
    """
    found = []
    current = Path(start_dir).resolve()
    while True:
        for name in CONFIG_FILES:
            candidate = current / name
            if candidate.is_file():
                found.append((candidate, read_config_file(candidate)))
                break
        if current.parent == current:
            break
        current = current.parent
    found.reverse()
    return found


@dataclass
class Config:
    """Runtime settings for the CLI and MCP server."""

    # Relative paths given to the MCP tools resolve against this directory
    root_dir: Path = field(default_factory=Path.cwd)

    # Threads used to run rules on one document (None: run inline)
    workers: Optional[int] = None

    # Environment-provided configuration fragment
    fix: Optional[bool] = None
    no_inline_config: Optional[bool] = None
    front_matter: Optional[str] = None

    version: str = __version__

    @classmethod
    def load(cls) -> "Config":
        """Load config with environment variable overrides."""
        config = cls()

        if val := os.environ.get("MDLINT_ROOT"):
            config.root_dir = Path(val).expanduser()

        if val := os.environ.get("MDLINT_WORKERS"):
            try:
                config.workers = int(val)
            except ValueError:
                logger.warning(f"Ignoring invalid MDLINT_WORKERS value {val!r}")

        if val := os.environ.get("MDLINT_FIX"):
            config.fix = val.lower() in TRUTHY
        if val := os.environ.get("MDLINT_NO_INLINE_CONFIG"):
            config.no_inline_config = val.lower() in TRUTHY
        if (val := os.environ.get("MDLINT_FRONT_MATTER")) is not None:
            config.front_matter = val

        return config

    def to_fragment(self) -> dict[str, Any]:
        """The environment overrides as a configuration fragment."""
        fragment: dict[str, Any] = {}
        if self.fix is not None:
            fragment["fix"] = self.fix
        if self.no_inline_config is not None:
            fragment["noInlineConfig"] = self.no_inline_config
        if self.front_matter is not None:
            fragment["frontMatter"] = self.front_matter
        return fragment


def load_config(
    start_dir: Path,
    config_path: Optional[Path] = None,
    overrides: Iterable[dict[str, Any]] = (),
    env: Optional[Config] = None,
) -> tuple[EffectiveConfig, list[Path]]:
    """
    Build the effective configuration for a run.

    Order, least to most specific: discovered files, an explicit
    ``config_path``, environment overrides, then ``overrides`` (the
    command line).

    Returns:
        ``(EffectiveConfig, sources)`` where sources are the files read
    """
    fragments: list[dict[str, Any]] = []
    sources: list[Path] = []

    for path, fragment in discover(start_dir):
        logger.debug(f"Using config file {path}")
        sources.append(path)
        fragments.append(fragment)

    if config_path is not None:
        fragments.append(read_config_file(config_path))
        sources.append(Path(config_path))

    env_fragment = (env or Config.load()).to_fragment()
    if env_fragment:
        fragments.append(env_fragment)

    fragments.extend(overrides)
    return merge(fragments), sources
