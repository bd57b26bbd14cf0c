"""lint_markdown tool implementation."""
import asyncio
import logging
from pathlib import Path

from mdlint.config import Config, load_config
from mdlint.core.errors import MdlintError
from mdlint.core.linter import default_registry, engine

logger = logging.getLogger(__name__)


def register(mcp, config: Config):
    """Register lint tools with MCP server."""
    registry = default_registry()

    def _select(rules: list[str] | None):
        """Registry restricted to ``rules`` (identifiers, aliases or tags)."""
        return registry.subset(rules) if rules else registry

    @mcp.tool()
    async def lint_markdown(
        path: str,
        fix: bool = False,
        rules: list[str] | None = None
    ) -> dict:
        """
        Lint a markdown file against the style rules.

        Configuration files (.markdownlint-cli2.*, .markdownlint.*,
        package.json) are discovered from the file's directory upwards.

        Args:
            path: Path to the .md file (absolute or relative to the root dir)
            fix: Apply fixes and write the file back (default: False)
            rules: Rule identifiers, aliases or tags to run (default: configured rules)

        Returns:
            Dictionary with:
            - path (str): Path that was linted
            - total_issues (int): Violations found, before any fixes were applied
            - fixable (int): Violations that carry a fix
            - violations (list): rule, line, column, message, has_fix
            - diagnostics (list): Configuration and directive warnings
            - fixed (list): Fixes applied (if fix=True)
            - dropped (list): Fixes skipped because they overlapped another

        Example:
            {"path": "docs/README.md", "fix": true, "rules": ["whitespace"]}
        """
        file_path = Path(path)
        if not file_path.is_absolute():
            file_path = config.root_dir / path

        if not file_path.exists():
            return {"error": f"File not found: {file_path}"}

        if file_path.suffix not in engine.MARKDOWN_SUFFIXES:
            return {"error": f"Expected .md file, got: {file_path.suffix}"}

        logger.info(f"Linting {file_path} (fix={fix}, rules={rules})")

        try:
            effective, _ = load_config(file_path.parent, env=config)
            report = await engine.lint_file(
                file_path, effective, _select(rules), fix=fix, workers=config.workers
            )

            logger.info(
                f"Lint complete: {report.total_issues} issues ({report.fixable} fixable)"
            )
            if fix and report.fixed:
                logger.info(f"Fixed: {', '.join(report.rules_fixed)}")

            return report.to_dict()

        except (MdlintError, OSError, UnicodeDecodeError) as e:
            logger.error(f"Lint failed: {e}", exc_info=True)
            return {"error": str(e)}

    @mcp.tool()
    async def lint_markdown_text(
        text: str,
        rules: list[str] | None = None
    ) -> dict:
        """
        Lint markdown given as text.

        Args:
            text: Markdown content
            rules: Rule identifiers, aliases or tags to run (default: all rules)

        Returns:
            The same report dictionary as lint_markdown, with path "<text>"
        """
        try:
            effective, _ = load_config(config.root_dir, env=config)
            report = await asyncio.to_thread(
                engine.lint_text, text, effective, _select(rules), path="<text>", workers=config.workers
            )
            return report.to_dict()
        except MdlintError as e:
            logger.error(f"Lint failed: {e}", exc_info=True)
            return {"error": str(e)}

    @mcp.tool()
    async def get_lint_rules() -> dict:
        """
        Get list of available lint rules.

        Returns:
            Dictionary with one entry per rule: aliases, tags, fixable, description.

        Example response:
            {
                "rules": {
                    "MD001": {"aliases": ["heading-increment"], "fixable": false, ...},
                    ...
                }
            }
        """
        return {"rules": {rule.identifier: rule.to_dict() for rule in registry}}
