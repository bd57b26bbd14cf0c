"""MCP server exposing the markdown linter over stdio."""
import logging
import sys

from mcp.server.fastmcp import FastMCP

from mdlint.config import Config
from mdlint.core.linter import default_registry
from mdlint.tools import lint

logger = logging.getLogger(__name__)


def create_server(config: Config) -> FastMCP:
    """Build a FastMCP server with the lint tools registered."""
    server = FastMCP("mdlint")
    lint.register(server, config)
    return server


def main():
    # stdout carries JSON-RPC
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)]
    )

    config = Config.load()
    logger.info(f"mdlint v{config.version} serving {len(default_registry())} rules")
    logger.info(f"Relative paths resolve against {config.root_dir}")
    if config.workers:
        logger.info(f"Rules run on {config.workers} worker threads")

    try:
        create_server(config).run(transport="stdio")
    except Exception as e:
        logger.error(f"Server stopped: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
