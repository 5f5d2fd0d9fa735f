"""Main CLI entry point for SheetNest."""

import click
from rich.console import Console

from sheetnest import __version__
from sheetnest.utils import setup_logging

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="SheetNest")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """SheetNest - nest flat parts onto laser and router sheet stock.

    Places parts around areas already cut from a sheet, exports cut-ready
    SVG/DXF drawings, and picks the best sheet from an inventory.
    """
    from sheetnest.config import get_settings

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging("DEBUG" if verbose else get_settings().log_level)


# Import and register commands
from sheetnest.cli.nest_cmd import nest, select

cli.add_command(nest)
cli.add_command(select)


@cli.command()
def status() -> None:
    """Show effective nesting configuration."""
    from sheetnest.config import get_settings

    settings = get_settings()

    console.print("[bold]SheetNest Status[/bold]")
    console.print(f"Version: {__version__}")
    console.print()
    console.print("[bold]Nesting:[/bold]")
    console.print(f"  Spacing: {settings.spacing}in")
    console.print(f"  Margin: {settings.margin}in")
    if settings.allow_rotation:
        console.print(f"  Rotations: {', '.join(str(a) for a in settings.rotation_angles)}")
    else:
        console.print("  Rotations: [yellow]disabled[/yellow]")
    console.print(f"  Default unit: {settings.default_unit}")
    console.print()
    console.print("[bold]Sheet selection:[/bold]")
    console.print(f"  Area buffer: {settings.area_buffer * 100:.0f}%")
    console.print()
    console.print(f"Output Directory: {settings.output_dir}")


if __name__ == "__main__":
    cli()
