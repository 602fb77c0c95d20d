"""
Recipe Remix - CLI Entry Point.

Usage:
    recipe-remix serve       Start the web API
    recipe-remix identity    Show (or create) the local session identity
    recipe-remix health      Check configuration
    recipe-remix --help      Show help
"""

import logging
import os

import typer
from rich.console import Console
from rich.logging import RichHandler

app = typer.Typer(
    name="recipe-remix",
    help="Recipe Remix - turn what's in your fridge into dinner.",
    add_completion=False,
)
console = Console()


def setup_logging(level: str) -> None:
    """Route stdlib logging through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


@app.callback()
def main(
    log_prompts: bool = typer.Option(False, "--log-prompts", "-l", help="Log all LLM prompts to prompt_logs/"),
) -> None:
    from recipe_remix.config import settings
    from recipe_remix.llm.prompt_logger import enable_prompt_logging

    setup_logging(settings.log_level)
    if log_prompts:
        enable_prompt_logging(True)


@app.command()
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload for development"),
) -> None:
    """Start the web API server."""
    import uvicorn

    # Hosting platforms set PORT
    actual_port = int(os.environ.get("PORT", port))

    console.print("\n[bold green]Recipe Remix[/bold green]")
    console.print(f"Starting server on http://localhost:{actual_port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        "recipe_remix.web.app:app",
        host="0.0.0.0",
        port=actual_port,
        reload=reload,
        log_config=None,  # keep the rich handler
    )


@app.command()
def identity() -> None:
    """Show the session identity saved recipes are stored under."""
    from recipe_remix.config import settings
    from recipe_remix.errors import PersistenceFailure
    from recipe_remix.identity import init_session_identity

    try:
        token = init_session_identity()
    except PersistenceFailure as e:
        console.print(f"[red]FAIL {e.message}[/red]")
        raise typer.Exit(1)

    console.print(token)
    console.print(f"[dim]Stored in {settings.session_id_path}[/dim]")


@app.command()
def health() -> None:
    """Check configuration."""
    from recipe_remix.config import get_settings

    console.print("\n[bold]Recipe Remix Health Check[/bold]\n")

    settings = get_settings()
    console.print("[green]OK[/green] Configuration loaded")
    console.print(f"   Environment: {settings.remix_env}")
    console.print(f"   Log level: {settings.log_level}")

    ok = True
    if settings.openai_api_key:
        console.print("[green]OK[/green] OpenAI API key configured")
    else:
        console.print("[red]FAIL[/red] OPENAI_API_KEY missing")
        ok = False

    if settings.supabase_url and settings.supabase_anon_key:
        console.print("[green]OK[/green] Supabase configured")
    else:
        console.print("[yellow]WARN[/yellow] Supabase not configured, saved recipes disabled")

    if not ok:
        raise typer.Exit(1)
    console.print("\n[green]All checks passed![/green]")


@app.command()
def version() -> None:
    """Show version information."""
    from recipe_remix import __version__

    console.print(f"Recipe Remix version {__version__}")


if __name__ == "__main__":
    app()
