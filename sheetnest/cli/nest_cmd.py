"""CLI commands for nesting parts and choosing sheets."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()


def _load_list(path: str, key: str) -> list:
    """Read a JSON list, or the `key` list of a JSON object."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"{Path(path).name} is not valid JSON: {e}")
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise click.BadParameter(f"{Path(path).name} must hold a list of {key}")
    return data


def _engine_options(spacing, margin, no_rotation) -> dict:
    """Settings-based engine options with command-line overrides."""
    from sheetnest.nesting import NestingConfig

    options = NestingConfig.from_settings().to_dict()
    if spacing is not None:
        options["spacing"] = spacing
    if margin is not None:
        options["margin"] = margin
    if no_rotation:
        options["allow_rotation"] = False
    return options


@click.command("nest")
@click.argument("parts_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--width", "-w", type=float, required=True, help="Sheet width in inches")
@click.option("--height", "-h", type=float, required=True, help="Sheet height in inches")
@click.option("--existing", "-e", type=click.Path(exists=True, dir_okay=False),
              help="JSON list of areas already cut from the sheet")
@click.option("--spacing", type=float, help="Minimum gap between parts (inches)")
@click.option("--margin", type=float, help="Sheet edge margin (inches)")
@click.option("--no-rotation", is_flag=True, help="Do not rotate parts")
@click.option("--svg", "svg_path", type=click.Path(dir_okay=False), help="Write the cut drawing (SVG)")
@click.option("--master", "master_path", type=click.Path(dir_okay=False), help="Write the master sheet drawing (SVG)")
@click.option("--dxf", "dxf_path", type=click.Path(dir_okay=False), help="Write the cut geometry (DXF)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def nest(parts_file, width, height, existing, spacing, margin, no_rotation,
         svg_path, master_path, dxf_path, as_json):
    """Nest the parts in PARTS_FILE onto one sheet."""
    from sheetnest.nesting import NestingConfig, NestingEngine
    from sheetnest.laser import DXFExporter, SVGExporter, master_cut_areas

    parts = _load_list(parts_file, "parts")
    existing_areas = _load_list(existing, "cut_areas") if existing else []
    sheet = {"width": width, "height": height}

    engine = NestingEngine(NestingConfig.from_dict(_engine_options(spacing, margin, no_rotation)))
    layout = engine.place(parts, sheet, existing_areas)

    svg = SVGExporter()
    if svg_path:
        svg.save_cut_drawing(layout, sheet, svg_path)
    if master_path:
        svg.save_master_drawing(sheet, master_cut_areas(existing_areas, layout, engine.margin), master_path)
    if dxf_path:
        DXFExporter().save(layout, sheet, dxf_path)

    if as_json:
        click.echo(json.dumps(layout.to_dict(), indent=2))
        return

    table = Table(title=f"Layout - {width:g}x{height:g}in sheet")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Part", style="cyan")
    table.add_column("Position", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Rotation", justify="right")

    for i, placement in enumerate(layout.placements):
        table.add_row(
            str(i + 1),
            placement.part.name or placement.part.id,
            f"({placement.x:.2f}, {placement.y:.2f})",
            f"{placement.width:.2f}x{placement.height:.2f}",
            f"{placement.rotation:g}°",
        )

    console.print(table)
    console.print(
        f"Utilization: [green]{layout.utilization_percent:.1f}%[/green]  "
        f"Remaining: {layout.remaining_area:.1f} in²"
    )

    if layout.failed_parts:
        console.print(f"\n[yellow]Unplaced parts ({len(layout.failed_parts)}):[/yellow]")
        for part in layout.failed_parts:
            console.print(f"  [yellow]•[/yellow] {part.name or part.id} ({part.width:.2f}x{part.height:.2f})")
    if layout.error_message:
        console.print(f"[red]Error: {layout.error_message}[/red]")


@click.command("select")
@click.argument("parts_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("sheets_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--buffer", "-b", "area_buffer", type=float, help="Area buffer fraction (default from settings)")
@click.option("--spacing", type=float, help="Minimum gap between parts (inches)")
@click.option("--margin", type=float, help="Sheet edge margin (inches)")
@click.option("--no-rotation", is_flag=True, help="Do not rotate parts")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def select(parts_file, sheets_file, area_buffer, spacing, margin, no_rotation, as_json):
    """Pick the best sheet in SHEETS_FILE for the parts in PARTS_FILE."""
    from sheetnest.config import get_settings
    from sheetnest.nesting import find_optimal_sheet

    parts = _load_list(parts_file, "parts")
    sheets = _load_list(sheets_file, "sheets")

    options = _engine_options(spacing, margin, no_rotation)
    options["area_buffer"] = area_buffer if area_buffer is not None else get_settings().area_buffer
    result = find_optimal_sheet(parts, sheets, options)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if not result.success:
        console.print(Panel(
            f"[red]{result.error}[/red]\n"
            f"Required area: {result.required_area:.1f} in²\n"
            f"Sheets checked: {result.candidate_count}",
            title="No sheet selected",
        ))
        return

    best = result.optimal_sheet
    console.print(Panel(
        f"[bold cyan]Sheet:[/bold cyan] {best.name or best.id or '(unnamed)'} "
        f"({best.width:g}x{best.height:g}in)\n"
        f"[bold green]Efficiency:[/bold green] {result.layout.efficiency * 100:.1f}%\n"
        f"[bold yellow]Required area:[/bold yellow] {result.required_area:.1f} in²",
        title="Optimal Sheet",
    ))

    if result.alternatives:
        table = Table(title="Alternatives")
        table.add_column("Sheet", style="cyan")
        table.add_column("Size", justify="right")
        table.add_column("Efficiency", justify="right", style="green")
        table.add_column("Wasted", justify="right", style="dim")
        for candidate in result.alternatives:
            sheet = candidate.sheet
            table.add_row(
                sheet.name or sheet.id or "(unnamed)",
                f"{sheet.width:g}x{sheet.height:g}",
                f"{candidate.efficiency * 100:.1f}%",
                f"{candidate.wasted_area:.1f} in²",
            )
        console.print(table)
