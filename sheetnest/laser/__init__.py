"""
Laser Output Module.

Bounding geometry for part outlines and SVG/DXF rendering of nested sheet
layouts.
"""

# geometry first: the nesting engine imports it while this package loads
from .geometry import (
    Bounds,
    DilatedOutline,
    parse_path_coordinates,
    extract_bounds,
    svg_path_size_inches,
    dilate,
    create_dilated_outline,
)
from .svg_export import (
    SVGExporter,
    render_cut_drawing,
    render_master_drawing,
    master_cut_areas,
)
from .dxf_export import (
    DXFExporter,
    layout_to_dxf,
    export_to_dxf,
)

__all__ = [
    # Geometry
    "Bounds",
    "DilatedOutline",
    "parse_path_coordinates",
    "extract_bounds",
    "svg_path_size_inches",
    "dilate",
    "create_dilated_outline",
    # SVG Export
    "SVGExporter",
    "render_cut_drawing",
    "render_master_drawing",
    "master_cut_areas",
    # DXF Export
    "DXFExporter",
    "layout_to_dxf",
    "export_to_dxf",
]
