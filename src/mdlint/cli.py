"""CLI for mdlint.

Lints markdown files from the terminal and lists the available rules.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from mdlint import __version__
from mdlint.config import Config, load_config
from mdlint.core.errors import ConfigError, MdlintError
from mdlint.core.linter import default_registry, find_markdown_files, lint_paths
from mdlint.core.linter.formatters import format_default, format_json, format_markdown

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdlint",
        description="Check markdown files against style rules and fix what can be fixed"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # lint command
    lint = subparsers.add_parser("lint", help="Lint markdown files")
    lint.add_argument(
        "paths", nargs="*", type=Path,
        help="Files or directories (default: configured globs, else current directory)"
    )
    lint.add_argument("--config", type=Path, help="Configuration file to apply")
    lint.add_argument(
        "--fix", action="store_true", default=None,
        help="Apply fixes and write files back"
    )
    lint.add_argument(
        "--format", choices=["default", "json", "markdown"], default="default",
        help="Output format (default: default)"
    )
    lint.add_argument(
        "--no-inline-config", action="store_true", default=None,
        help="Ignore <!-- markdownlint-... --> directives"
    )
    lint.add_argument(
        "--enable", nargs="+", default=[], metavar="RULE",
        help="Enable rules (identifiers, aliases or tags)"
    )
    lint.add_argument(
        "--disable", nargs="+", default=[], metavar="RULE",
        help="Disable rules (identifiers, aliases or tags)"
    )
    lint.add_argument(
        "--workers", type=int, default=None,
        help="Threads used to run rules on each file"
    )
    lint.add_argument("--no-color", action="store_true", help="Plain output")
    lint.add_argument(
        "--verbose", "-v", action="store_true",
        help="Debug logging"
    )

    # rules command
    subparsers.add_parser("rules", help="List available rules")

    return parser


def cli_fragment(args: argparse.Namespace) -> dict:
    """Command-line options as the last configuration fragment."""
    fragment: dict = {}
    rules: dict = {}
    for name in args.enable:
        rules[name] = True
    for name in args.disable:
        rules[name] = False
    if rules:
        fragment["config"] = rules
    if args.fix:
        fragment["fix"] = True
    if args.no_inline_config:
        fragment["noInlineConfig"] = True
    return fragment


async def lint_command(args: argparse.Namespace) -> int:
    """Execute the lint command."""
    env = Config.load()
    try:
        config, sources = load_config(Path.cwd(), args.config, [cli_fragment(args)], env=env)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    for source in sources:
        logging.getLogger(__name__).debug(f"Config: {source}")

    paths = args.paths
    if not paths and not config.globs:
        paths = [Path(".")]
    files = find_markdown_files(paths, config.globs, config.ignores)
    if not files:
        print("No markdown files found", file=sys.stderr)
        return EXIT_OK

    workers = args.workers if args.workers is not None else env.workers
    reports = await lint_paths(files, config, default_registry(), fix=config.fix, workers=workers)

    if args.format == "json":
        print(format_json(reports))
    elif args.format == "markdown":
        print("\n".join(format_markdown(report) for report in reports))
    else:
        sys.stdout.write(format_default(reports, color=not args.no_color and sys.stdout.isatty()))

    remaining = sum(report.total_issues - len(report.fixed) for report in reports)
    return EXIT_VIOLATIONS if remaining else EXIT_OK


def rules_command() -> int:
    """Execute the rules command."""
    for rule in default_registry():
        aliases = "/".join(rule.aliases)
        fixable = " (fixable)" if rule.fixable else ""
        print(f"{rule.identifier} {aliases}{fixable}")
        print(f"    {rule.description}")
        print(f"    tags: {', '.join(sorted(rule.tags))}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    verbose = getattr(args, "verbose", False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr
    )

    try:
        if args.command == "lint":
            return asyncio.run(lint_command(args))
        return rules_command()
    except MdlintError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
