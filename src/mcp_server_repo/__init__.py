import asyncio
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

import click

from .config import load_config, load_environment_variables
from .error_handling import ConfigurationError
from .logging_config import configure_logging


@click.group()
def main() -> None:
    """MCP Repository Server - GitHub repository automation for MCP"""


@main.command()
@click.option("--host", type=str, default=None, help="Interface to bind (overrides HOST)")
@click.option("--port", "-p", type=int, default=None, help="Port to listen on (overrides PORT)")
@click.option(
    "--env-file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Additional .env file to load",
)
@click.option("-v", "--verbose", count=True)
@click.option(
    "--enable-file-logging",
    is_flag=True,
    help="Enable logging to file in logs/ directory",
)
def serve(
    host: str | None,
    port: int | None,
    env_file: Path | None,
    verbose: int,
    enable_file_logging: bool,
) -> None:
    """Serve the tools over /tool/<action> and MCP over SSE."""
    from .server import serve as run_server

    load_environment_variables(env_file)
    if host:
        os.environ["HOST"] = host
    if port is not None:
        os.environ["PORT"] = str(port)

    logging_level = os.environ.get("LOG_LEVEL", "WARNING")
    if verbose == 1:
        logging_level = "INFO"
    elif verbose >= 2:
        logging_level = "DEBUG"
    os.environ["LOG_LEVEL"] = logging_level

    log_file = None
    if enable_file_logging:
        session_id = os.environ.get(
            "MCP_SESSION_ID", datetime.now().strftime("%Y%m%d_%H%M%S")
        )
        log_file = Path.cwd() / "logs" / f"mcp_repo_debug-{session_id}.log"
        print(f"📝 Debug logging enabled: {log_file}", file=sys.stderr)
    configure_logging(logging_level, log_file)

    try:
        config = load_config()
    except ConfigurationError as e:
        logging.getLogger(__name__).critical(e.message)
        raise click.ClickException(e.message)

    asyncio.run(run_server(config))


@main.command()
@click.option(
    "--server-url",
    default=lambda: os.environ.get("MCP_SERVER_URL", "http://localhost:3001"),
    show_default="http://localhost:3001",
    help="Base url of a running server",
)
def prompt(server_url: str) -> None:
    """Interactively call tools on a running server."""
    from .prompt import run_prompt

    configure_logging(os.environ.get("LOG_LEVEL", "WARNING"))
    asyncio.run(run_prompt(server_url))


if __name__ == "__main__":
    main()
