"""
curseforge-mcp CLI.

Usage:
    curseforge-mcp                  Run the MCP server on stdio (same as `serve`)
    curseforge-mcp serve            Run the MCP server on stdio
    curseforge-mcp setup            Interactive configuration wizard
    curseforge-mcp cookies-extract  Pull curseforge.com cookies from installed browsers
    curseforge-mcp cookies-set RAW  Store a "name=value; ..." cookie string
    curseforge-mcp status           Show which tool groups are available
"""

import asyncio
import logging
import sys

import typer

from curseforge_mcp import __version__
from curseforge_mcp.auth.storage import CookieStore
from curseforge_mcp.capabilities import resolve_capabilities
from curseforge_mcp.config import load_settings
from curseforge_mcp.utils.console import (
    console,
    print_error,
    print_header,
    print_info,
    print_status_table,
    print_success,
    print_warning,
    set_headless,
)

app = typer.Typer(
    name="curseforge-mcp",
    help="CurseForge tools for MCP hosts (mods, uploads, comments, project settings)",
    add_completion=False,
    rich_markup_mode="rich",
)

NOISY_LOGGERS = ["aiohttp", "asyncio", "playwright", "httpx", "httpcore", "mcp", "fastmcp"]


def setup_logging(verbose: bool, headless: bool):
    """Configure logging on stderr; stdout belongs to the MCP transport."""
    level = logging.DEBUG if verbose else logging.INFO

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if headless:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(
            '[%(asctime)s] %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
    else:
        from rich.logging import RichHandler

        handler = RichHandler(
            console=console,
            rich_tracebacks=True,
            show_time=verbose,
            show_path=verbose,
            markup=False,
        )
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for noisy_logger in NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    set_headless(headless)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    headless: bool = typer.Option(False, "--headless", "-H", help="Plain log output (no rich formatting)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """CurseForge MCP server.

    Run without arguments to serve on stdio.
    """
    setup_logging(verbose, headless)
    ctx.ensure_object(dict)
    ctx.obj["headless"] = headless
    ctx.obj["verbose"] = verbose

    if ctx.invoked_subcommand is None:
        serve()


@app.command()
def serve():
    """Run the MCP server on stdio."""
    from curseforge_mcp.server import run_stdio

    try:
        settings = load_settings()
    except Exception as e:
        print_error(f"Invalid configuration: {e}")
        raise typer.Exit(1)
    run_stdio(settings)


@app.command()
def setup(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Reconfigure even if .env exists"),
):
    """Run the setup wizard to create or update .env."""
    from curseforge_mcp.utils.setup import env_file_exists, run_setup_wizard

    if ctx.obj.get("headless", False):
        print_error("Setup wizard requires an interactive terminal")
        print_info("Set CURSEFORGE_API_KEY / CURSEFORGE_AUTHOR_TOKEN in the environment instead")
        raise typer.Exit(1)

    if env_file_exists() and not force:
        print_info(".env already exists. Use --force to reconfigure.")
        raise typer.Exit(0)

    if run_setup_wizard() is None:
        raise typer.Exit(1)


@app.command("cookies-extract")
def cookies_extract():
    """Extract curseforge.com session cookies from installed browsers."""
    settings = load_settings()
    store = CookieStore(settings.cookies_path)
    outcome = asyncio.run(store.auto_extract())
    if store.has_session():
        print_success(outcome)
        print_info(f"Saved to {settings.cookies_path}")
    else:
        print_error(outcome)
        raise typer.Exit(1)


@app.command("cookies-set")
def cookies_set(
    raw: str = typer.Argument(..., help='Cookie header, e.g. "CobaltSession=...; XSRF-TOKEN=..."'),
):
    """Store session cookies copied from the browser."""
    settings = load_settings()
    store = CookieStore(settings.cookies_path)
    entries = store.set_cookies_from_string(raw)
    if not entries:
        print_error("No name=value pairs found")
        raise typer.Exit(1)
    print_success(f"Saved {len(entries)} cookies to {settings.cookies_path}")
    if store.xsrf_token() is None:
        print_warning("No XSRF-TOKEN cookie: write requests may be rejected")


@app.command()
def status():
    """Show configured credentials and the tool groups they unlock."""
    print_header(f"curseforge-mcp {__version__}", "Credential and session overview")

    settings = load_settings()
    store = CookieStore(settings.cookies_path)
    store.load()
    table = resolve_capabilities(settings, has_session=store.has_session())

    rows = []
    for capability in table:
        state = "[green]✓ enabled[/green]" if capability.enabled else "[red]✗ disabled[/red]"
        rows.append((capability.group.value, state, capability.reason))
    print_status_table("Tool groups", rows)

    console.print()
    print_info(f"Session cookies: {len(store.cookies)} ({settings.cookies_path})")
    print_info(f"Web transport: {settings.web_transport}")
    if settings.curseforge_game_slug:
        print_info(f"Default game: {settings.curseforge_game_slug}")


if __name__ == "__main__":
    app()
