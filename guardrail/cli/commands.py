"""CLI commands for guardrail."""

import asyncio
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from guardrail import __version__, __logo__

app = typer.Typer(
    name="guardrail",
    help=f"{__logo__} guardrail - allowlist-guarded command execution server",
    no_args_is_help=True,
)

# serve writes only through loguru; stdout is the RPC stream there
console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} guardrail v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """guardrail - allowlist-guarded command execution server."""
    pass


ALLOWED_COMMANDS_HELP = "Comma-separated program names allowed to run"
ALLOWED_PATHS_HELP = "Comma-separated directory roots commands may reference"
CONFIG_HELP = 'JSON config file, e.g. {"allowedPaths": ["/tmp"]}'


@app.command()
def serve(
    allowed_commands: str = typer.Option(None, "--allowed-commands", help=ALLOWED_COMMANDS_HELP),
    allowed_paths: str = typer.Option(None, "--allowed-paths", help=ALLOWED_PATHS_HELP),
    config: Path = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    """Run the JSON-RPC server on stdin/stdout."""
    from guardrail.config.loader import load_config
    from guardrail.log import setup_logging
    from guardrail.server.rpc import StdioServer

    setup_logging(verbose)

    settings = load_config(config, allowed_commands, allowed_paths)
    policy = settings.to_policy()

    logger.info("Initializing MCP Guardrail server")
    logger.info(f"Allowed commands: {', '.join(sorted(policy.allowed_commands))}")
    if policy.allowed_paths:
        logger.info(f"Allowed paths: {', '.join(policy.allowed_paths)}")
    else:
        logger.info("Allowed paths: (no restriction)")

    server = StdioServer(policy, settings.exec.to_exec_config())
    try:
        asyncio.run(server.run_stdio())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


@app.command()
def check(
    command: str = typer.Argument(help="Command to evaluate"),
    allowed_commands: str = typer.Option(None, "--allowed-commands", help=ALLOWED_COMMANDS_HELP),
    allowed_paths: str = typer.Option(None, "--allowed-paths", help=ALLOWED_PATHS_HELP),
    config: Path = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
):
    """Show whether a command would be allowed, without running it."""
    from guardrail.config.loader import load_config
    from guardrail.exec.policy import authorize_request
    from guardrail.exec.safety import (
        extract_paths,
        get_program_name,
        is_command_authorized,
        is_path_authorized,
    )
    from guardrail.exec.types import CommandRequest

    policy = load_config(config, allowed_commands, allowed_paths).to_policy()

    table = Table(title="Policy Check")
    table.add_column("Token", style="cyan")
    table.add_column("Kind")
    table.add_column("Allowed", justify="center")

    program = get_program_name(command)
    table.add_row(escape(program), "program", _mark(is_command_authorized(command, policy)))
    for path in extract_paths(command):
        allowed = not policy.allowed_paths or is_path_authorized(path, policy)
        table.add_row(escape(path), "path", _mark(allowed))

    console.print(table)

    denied = authorize_request(CommandRequest(command=command), policy)
    if denied is not None:
        console.print(denied.error, style="red", markup=False)
        raise typer.Exit(1)

    console.print("[green]Command allowed[/green]")


def _mark(allowed: bool) -> str:
    return "[green]✓[/green]" if allowed else "[red]✗[/red]"
