"""
Tactile CLI - Command line interface.

Usage:
    tactile key Enter --shift
    tactile box 42 --cdp-url ws://127.0.0.1:9222/devtools/browser/...
    tactile click 42 --offset-x 5 --offset-y 5
"""

import asyncio

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from tactile.config import CDP_URL_ENV

# Load .env file if present
load_dotenv()

app = typer.Typer(
    name="tactile",
    help="Element geometry and input synthesis over the DevTools Protocol",
    add_completion=False,
)

console = Console()

CDP_URL_OPTION = typer.Option(
    None, "--cdp-url", "-c", envvar=CDP_URL_ENV, help="Browser CDP URL (ws:// or http://)"
)


@app.command()
def key(
    name: str = typer.Argument(..., help='Key name, e.g. "Enter", "ArrowLeft", "a"'),
    shift: bool = typer.Option(False, "--shift", "-s", help="Resolve with Shift held"),
) -> None:
    """Show the key description a key name resolves to."""
    from tactile.exceptions import UnknownKeyError
    from tactile.input.key_definitions import MODIFIER_SHIFT, key_description_for

    try:
        description = key_description_for(name, MODIFIER_SHIFT if shift else 0)
    except UnknownKeyError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Key {name!r}" + (" + Shift" if shift else ""))
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("key", repr(description.key))
    table.add_row("code", repr(description.code))
    table.add_row("keyCode", str(description.key_code))
    table.add_row("text", repr(description.text))
    table.add_row("location", str(description.location))
    table.add_row("keypad", str(description.is_keypad))
    console.print(table)


@app.command()
def box(
    backend_node_id: int = typer.Argument(..., help="backendNodeId of the element"),
    cdp_url: str | None = CDP_URL_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Print the box model and bounding box of an element."""
    _setup(verbose)
    try:
        asyncio.run(_print_box(cdp_url, backend_node_id))
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def click(
    backend_node_id: int = typer.Argument(..., help="backendNodeId of the element"),
    cdp_url: str | None = CDP_URL_OPTION,
    offset_x: float | None = typer.Option(None, "--offset-x", help="X offset from top-left"),
    offset_y: float | None = typer.Option(None, "--offset-y", help="Y offset from top-left"),
    button: str = typer.Option("left", "--button", "-b", help="left/right/middle"),
    count: int = typer.Option(1, "--count", "-n", help="Number of clicks"),
    timeout: float | None = typer.Option(None, "--timeout", "-t", help="Seconds to wait"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Wait for an element to be stable and click it."""
    _setup(verbose)

    offset = None
    if offset_x is not None or offset_y is not None:
        offset = {"x": offset_x, "y": offset_y}

    try:
        point = asyncio.run(
            _click(cdp_url, backend_node_id, offset, button, count, timeout)
        )
        console.print(f"[green]✓ Clicked at ({point.x:.1f}, {point.y:.1f})[/green]")
    except Exception as e:
        console.print(f"[red]✗ {type(e).__name__}: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from tactile import __version__

    console.print(f"Tactile v{__version__}")


def _setup(verbose: bool) -> None:
    from tactile.logging import setup_logging

    setup_logging(level="DEBUG" if verbose else "WARNING")


async def _print_box(cdp_url: str | None, backend_node_id: int) -> None:
    from tactile.browser import BrowserConfig, BrowserSession

    config = BrowserConfig(cdp_url=cdp_url, watch_contexts=False)
    async with BrowserSession(config=config) as session:
        element = await session.element(backend_node_id)
        try:
            model = await element.box_model()
            if model is None:
                console.print(f"[yellow]Element {backend_node_id} is not rendered[/yellow]")
                return

            table = Table(title=f"Element {backend_node_id}")
            table.add_column("Box", style="cyan")
            table.add_column("Quad")
            for name in ("content", "padding", "border", "margin"):
                quad = getattr(model, name)
                table.add_row(name, "  ".join(f"({p.x:.1f}, {p.y:.1f})" for p in quad))
            console.print(table)

            bbox = model.bounding_box
            console.print(
                f"Bounding box: x={bbox.x:.1f} y={bbox.y:.1f} "
                f"width={bbox.width:.1f} height={bbox.height:.1f}"
            )
        finally:
            await element.dispose()


async def _click(
    cdp_url: str | None,
    backend_node_id: int,
    offset: dict | None,
    button: str,
    count: int,
    timeout: float | None,
):
    from tactile.browser import BrowserConfig, BrowserSession

    async with BrowserSession(config=BrowserConfig(cdp_url=cdp_url)) as session:
        element = await session.element(backend_node_id)
        try:
            return await element.click(
                offset=offset, button=button, click_count=count, timeout=timeout
            )
        finally:
            await element.dispose()


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
