"""
DXF Export for Nested Cut Geometry.

Writes the new parts of a layout as closed polylines in an R14 DXF file, in
inches, for cutting software that does not take SVG. Coordinates use the
same top-right origin as the SVG cut drawing.
"""

from pathlib import Path
from typing import Any, List, Sequence, Tuple

from sheetnest.nesting.models import Layout, Sheet
from sheetnest.utils import ensure_dir, get_logger

logger = get_logger("laser.dxf_export")

# Layer name and ACI (AutoCAD Color Index) color
DXF_LAYERS = {
    'cut': ('CUT', 1),        # Red
    'sheet': ('SHEET', 8),    # Gray
}


class DXFExporter:
    """
    Writes the footprints of newly placed parts as DXF polylines.

    Existing cut areas are left out, like the SVG cut drawing; the optional
    sheet outline goes on its own layer so it can be hidden before cutting.

    Usage:
        exporter = DXFExporter()
        dxf_content = exporter.layout_to_dxf(layout, sheet)
        exporter.save(layout, sheet, 'output.dxf')
    """

    def __init__(self, precision: int = 4, include_sheet: bool = True):
        """
        Initialize DXF exporter.

        Args:
            precision: Decimal precision for coordinates
            include_sheet: Add the sheet outline on its own layer
        """
        self.precision = precision
        self.include_sheet = include_sheet

    def layout_to_dxf(self, layout: Layout, sheet: Any) -> str:
        """
        Convert the new cut areas of a layout to a DXF string.

        Args:
            layout: Nesting layout
            sheet: Sheet or sheet descriptor the layout was made for

        Returns:
            DXF content as string
        """
        sheet = Sheet.from_descriptor(sheet)
        cut_layer, cut_color = DXF_LAYERS['cut']
        layers = [(cut_layer, cut_color)]
        if self.include_sheet:
            layers.append(DXF_LAYERS['sheet'])

        lines = []
        lines.extend(self._dxf_header())
        lines.extend(self._dxf_tables(layers))

        lines.extend(['0', 'SECTION', '2', 'ENTITIES'])

        if self.include_sheet and sheet.width > 0 and sheet.height > 0:
            outline = [(0.0, 0.0), (sheet.width, 0.0), (sheet.width, sheet.height), (0.0, sheet.height)]
            lines.extend(self._polyline(outline, DXF_LAYERS['sheet'][0]))

        for area in layout.new_cut_areas:
            points = area.polygon or [
                (area.x, area.y),
                (area.x + area.width, area.y),
                (area.x + area.width, area.y + area.height),
                (area.x, area.y + area.height),
            ]
            # Mirror x so the origin is the sheet's top-right corner
            flipped = [(sheet.width - x, y) for x, y in points]
            lines.extend(self._polyline(flipped, cut_layer))

        lines.extend(['0', 'ENDSEC'])
        lines.extend(['0', 'EOF'])

        return '\n'.join(lines)

    def save(self, layout: Layout, sheet: Any, filepath: str) -> Path:
        """
        Save the layout's cut geometry to a DXF file.

        Args:
            layout: Nesting layout
            sheet: Sheet or sheet descriptor
            filepath: Output file path
        """
        dxf_content = self.layout_to_dxf(layout, sheet)

        filepath = Path(filepath)
        ensure_dir(filepath.parent)

        with open(filepath, 'w') as f:
            f.write(dxf_content)

        logger.debug(f"Wrote {len(layout.new_cut_areas)} cut outlines to {filepath}")
        return filepath

    def _dxf_header(self) -> List[str]:
        """Generate DXF header section."""
        return [
            '0', 'SECTION',
            '2', 'HEADER',
            '9', '$ACADVER',
            '1', 'AC1014',  # AutoCAD R14 format (widely compatible)
            '9', '$INSUNITS',
            '70', '1',  # Inches
            '9', '$MEASUREMENT',
            '70', '0',  # Imperial
            '0', 'ENDSEC',
        ]

    def _dxf_tables(self, layers: Sequence[Tuple[str, int]]) -> List[str]:
        """Generate DXF tables section with layers."""
        lines = [
            '0', 'SECTION',
            '2', 'TABLES',
            '0', 'TABLE',
            '2', 'LAYER',
            '70', str(len(layers)),
        ]

        for layer_name, color in layers:
            lines.extend([
                '0', 'LAYER',
                '2', layer_name,
                '70', '0',  # Layer state (0 = on)
                '62', str(color),  # Color number
                '6', 'CONTINUOUS',  # Linetype
            ])

        lines.extend([
            '0', 'ENDTAB',
            '0', 'ENDSEC',
        ])

        return lines

    def _polyline(self, points: Sequence[Tuple[float, float]], layer: str) -> List[str]:
        """Closed LWPOLYLINE entity."""
        lines = [
            '0', 'LWPOLYLINE',
            '8', layer,
            '90', str(len(points)),
            '70', '1',  # Closed
        ]
        for x, y in points:
            lines.extend([
                '10', f'{x:.{self.precision}f}',
                '20', f'{y:.{self.precision}f}',
            ])
        return lines


def layout_to_dxf(layout: Layout, sheet: Any) -> str:
    """
    Convenience function to convert a layout's cut geometry to DXF.

    Args:
        layout: Nesting layout
        sheet: Sheet or sheet descriptor

    Returns:
        DXF content string
    """
    return DXFExporter().layout_to_dxf(layout, sheet)


def export_to_dxf(layout: Layout, sheet: Any, filepath: str) -> Path:
    """Convenience function to save a layout's cut geometry as DXF."""
    return DXFExporter().save(layout, sheet, filepath)
