"""School Library MCP Server - FastMCP Implementation

Clients connect via stdio transport for school library operations.

Features exposed:
- Resources: Book catalog, student roster, borrow records, dashboard reports
- Tools: Book and student management, borrow and return
"""

import logging
import signal
import sys
from typing import Any

from fastmcp import FastMCP

from .config import LibraryConfig, get_config
from .database import DatabaseManager
from .resources import all_resources
from .tools import all_tools

# Initialize logging - stderr for logs, stdout for MCP protocol
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)

logger = logging.getLogger(__name__)


def create_server(db: DatabaseManager, config: LibraryConfig | None = None) -> FastMCP:
    """Build a FastMCP server whose resources and tools share ``db``."""
    config = config or get_config()

    mcp = FastMCP(
        name=config.server_name,
        version=config.server_version,
        instructions=(
            "School Library MCP Server - tracks books, students and loans for a "
            "school library. Use resources to browse the catalog, the student "
            "roster, borrow records and the dashboard (statistics, recent "
            "activity, overdue items). Use tools to manage books and students "
            "and to borrow or return books."
        ),
    )

    resources = all_resources(db, config.recent_activity_limit)
    for resource in resources:
        uri = resource.get("uri_template", resource.get("uri"))
        if not uri:
            logger.error("Resource missing URI: %s", resource)
            continue

        logger.debug("Registering resource: %s with URI: %s", resource["name"], uri)
        try:
            mcp.resource(
                uri,
                name=resource["name"],
                description=resource["description"],
                mime_type=resource["mime_type"],
            )(resource["handler"])
        except Exception:
            logger.exception("Failed to register resource %s", resource["name"])
            raise

    logger.info("Registered %d resources", len(resources))

    tools = all_tools(db, config.loan_period_days)
    for tool in tools:
        logger.debug("Registering tool: %s", tool["name"])
        try:
            mcp.tool(
                name=tool["name"],
                description=tool["description"],
            )(tool["handler"])
        except Exception:
            logger.exception("Failed to register tool %s", tool["name"])
            raise

    logger.info("Registered %d tools", len(tools))
    return mcp


def run_stdio_server(config: LibraryConfig) -> None:
    """Run the MCP server using stdio transport.

    Stdin receives JSON-RPC requests, stdout sends responses.
    """
    logger.info("Starting %s v%s on stdio transport", config.server_name, config.server_version)

    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled - verbose protocol logging active")
    else:
        logging.getLogger().setLevel(config.log_level)
        logging.getLogger("fastmcp").setLevel(logging.WARNING)

    config.database_path.parent.mkdir(parents=True, exist_ok=True)
    db = DatabaseManager(config.get_database_url(), config.sqlite_busy_timeout)
    db.init_database()
    mcp = create_server(db, config)

    def signal_handler(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s, initiating shutdown...", signum)
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        logger.info("MCP Server ready and waiting for connections...")
        mcp.run(transport="stdio")
    except Exception:
        logger.exception("Fatal error in MCP server")
        sys.exit(1)
    finally:
        db.close()


def main() -> None:
    """Main entry point for the MCP server."""
    try:
        config = get_config()

        logger.info("=" * 60)
        logger.info("School Library MCP Server")
        logger.info("Version: %s", config.server_version)
        logger.info("Transport: %s", config.transport)
        logger.info("Database: %s", config.database_path)
        logger.info("Debug Mode: %s", config.debug)
        logger.info("=" * 60)

        if config.transport == "stdio":
            run_stdio_server(config)
        else:
            logger.error("Unsupported transport: %s", config.transport)
            sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Failed to start MCP server")
        sys.exit(1)


if __name__ == "__main__":
    main()
