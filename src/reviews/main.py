"""
Reviews - CLI Entry Point.

Usage:
    reviews serve             Start the web server
    reviews serve --reload    Start with auto-reload for development
    reviews --help            Show help
"""

import logging
import sys

import typer
from rich.console import Console

app = typer.Typer(
    name="reviews",
    help="Reviews - discover places and share reviews.",
    add_completion=False,
)
console = Console()


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the server process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Quiet down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


@app.callback()
def main() -> None:
    """Reviews web service."""


@app.command()
def serve(
    port: int | None = typer.Option(None, "--port", "-p", help="Port to run on (default: PORT setting)"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload for development"),
) -> None:
    """Start the web server."""
    import uvicorn

    from reviews.config import get_settings

    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"\n[red]FAIL Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with the Supabase variables.[/dim]")
        raise typer.Exit(1)

    setup_logging(settings.log_level)
    actual_port = port or settings.port

    console.print("\n[bold green]Reviews[/bold green]")
    console.print(f"Starting server on http://localhost:{actual_port}")
    console.print(f"[dim]Environment: {settings.reviews_env}[/dim]")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        "reviews.web.app:app",
        host=settings.host,
        port=actual_port,
        reload=reload,
    )


if __name__ == "__main__":
    app()
