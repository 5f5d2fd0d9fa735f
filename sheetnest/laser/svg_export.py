"""
SVG Export for Nested Sheet Layouts.

Renders two documents per sheet:

- a cut drawing holding only the parts placed by the current run, with its
  origin at the sheet's top-right corner, ready to send to the cutter;
- a master drawing of the whole sheet with every region ever cut from it,
  for review.

Sizes are written in inches (width="48in") with a matching viewBox, so one
user unit is one inch.
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional
from xml.dom import minidom

from sheetnest.nesting.models import Layout, OccupiedRegion, Sheet
from sheetnest.utils import ensure_dir, format_number, get_logger

logger = get_logger("laser.svg_export")

SVG_NAMESPACE = "http://www.w3.org/2000/svg"
MAX_LABEL_LENGTH = 5

CUT_STYLE = """
      .cut-path {
        fill: none;
        stroke: black;
        stroke-width: 0.01in;
        vector-effect: non-scaling-stroke;
      }
      .part-label {
        font-family: Arial, sans-serif;
        font-size: 0.1in;
        fill: black;
        text-anchor: middle;
      }
      .error { font-family: Arial, sans-serif; font-size: 0.2in; fill: red; }
"""

MASTER_STYLE = """
      .sheet-outline {
        fill: none;
        stroke: #666;
        stroke-width: 0.02in;
      }
      .cut-area {
        fill: rgba(255, 0, 0, 0.3);
        stroke: red;
        stroke-width: 0.01in;
      }
      .area-label {
        font-family: Arial, sans-serif;
        font-size: 0.08in;
        fill: red;
        text-anchor: middle;
      }
      .error { font-family: Arial, sans-serif; font-size: 0.2in; fill: red; }
"""


def _fmt(value: float) -> str:
    return format_number(value, 4)


def _area_value(area: Any, key: str, default: Any = None) -> Any:
    """Read a field from a region descriptor dict or a region/cut-area object."""
    if isinstance(area, dict):
        return area.get(key, default)
    return getattr(area, key, default)


class SVGExporter:
    """
    Renders nesting layouts as SVG documents.

    Usage:
        exporter = SVGExporter()
        svg = exporter.render_cut_drawing(layout, sheet)
        exporter.save_master_drawing(sheet, cut_areas, 'sheet.svg')
    """

    def __init__(self, generated_at: Optional[datetime] = None):
        """
        Initialize SVG exporter.

        Args:
            generated_at: Timestamp written into metadata (default: now)
        """
        self.generated_at = generated_at

    def render_cut_drawing(self, layout: Layout, sheet: Any) -> str:
        """
        Render the new parts of a layout for cutting.

        Each part is a rectangle in its own group, translated so that x is
        measured from the sheet's right edge and rotated about the centre of
        its footprint.

        Args:
            layout: Nesting layout
            sheet: Sheet or sheet descriptor the layout was made for

        Returns:
            SVG document string
        """
        try:
            sheet = Sheet.from_descriptor(sheet)
            if sheet.width <= 0 or sheet.height <= 0:
                return self._error_document(sheet, CUT_STYLE, "Sheet has no dimensions")
            root = self._document(sheet, CUT_STYLE)
            self._metadata(
                root,
                title="Laser Cut Layout - New Parts Only",
                description=f"Generated {self._timestamp()}",
                note="This SVG contains only NEW parts to be cut. Origin at top-right (0,0).",
            )
            for index, placement in enumerate(layout.placements):
                self._add_part(root, sheet, placement, index)
            return self._to_string(root)
        except Exception as e:
            logger.warning(f"Could not render cut drawing: {e}")
            return self._error_document(sheet, CUT_STYLE, f"Cut drawing unavailable: {e}")

    def render_master_drawing(self, sheet: Any, all_cut_areas: Optional[Iterable[Any]]) -> str:
        """
        Render a sheet with every historical and new cut area.

        Areas with polygon points are drawn as filled paths, others as
        rectangles. Labels are the first five characters of the part name,
        or the area's 1-based index.

        Args:
            sheet: Sheet or sheet descriptor
            all_cut_areas: Region descriptors, OccupiedRegions or CutAreas

        Returns:
            SVG document string
        """
        try:
            sheet = Sheet.from_descriptor(sheet)
            if sheet.width <= 0 or sheet.height <= 0:
                return self._error_document(sheet, MASTER_STYLE, "Sheet has no dimensions")
            root = self._document(sheet, MASTER_STYLE)
            self._metadata(
                root,
                title="Master Sheet Layout - All Cut Areas",
                description="Shows all areas that have been cut from this sheet",
            )
            root.append(ET.Comment(" Sheet outline "))
            ET.SubElement(root, "rect", {
                "x": "0",
                "y": "0",
                "width": _fmt(sheet.width),
                "height": _fmt(sheet.height),
                "class": "sheet-outline",
            })

            if all_cut_areas and not isinstance(all_cut_areas, (str, bytes, dict)):
                for index, area in enumerate(all_cut_areas):
                    self._add_cut_area(root, area, index)
            return self._to_string(root)
        except Exception as e:
            logger.warning(f"Could not render master drawing: {e}")
            return self._error_document(sheet, MASTER_STYLE, f"Master drawing unavailable: {e}")

    def save_cut_drawing(self, layout: Layout, sheet: Any, filepath: str) -> Path:
        """Save the cut drawing to an SVG file."""
        return self._write(self.render_cut_drawing(layout, sheet), filepath)

    def save_master_drawing(self, sheet: Any, all_cut_areas: Optional[Iterable[Any]], filepath: str) -> Path:
        """Save the master drawing to an SVG file."""
        return self._write(self.render_master_drawing(sheet, all_cut_areas), filepath)

    def _add_part(self, root: ET.Element, sheet: Sheet, placement, index: int):
        part = placement.part
        width, height = placement.width, placement.height
        # Pre-rotation size, centred in the footprint so the rotation lands on it
        part_width, part_height = part.width, part.height
        x = sheet.width - placement.x - width
        y = placement.y

        group = ET.SubElement(root, "g", {
            "id": f"part-{part.id}",
            "transform": (
                f"translate({_fmt(x)},{_fmt(y)}) "
                f"rotate({_fmt(placement.rotation or 0)},{_fmt(width / 2)},{_fmt(height / 2)})"
            ),
        })
        ET.SubElement(group, "rect", {
            "x": _fmt((width - part_width) / 2),
            "y": _fmt((height - part_height) / 2),
            "width": _fmt(part_width),
            "height": _fmt(part_height),
            "class": "cut-path",
            "data-part-id": str(part.id),
            "data-part-name": part.name or "Unnamed",
        })
        label = ET.SubElement(group, "text", {
            "x": _fmt(width / 2),
            "y": _fmt(height / 2),
            "class": "part-label",
        })
        label.text = str(index + 1)

    def _add_cut_area(self, root: ET.Element, area: Any, index: int):
        x = _area_value(area, "x")
        y = _area_value(area, "y")
        width = _area_value(area, "width") or 0
        height = _area_value(area, "height") or 0
        part_id = _area_value(area, "part_id") or ""
        part_name = _area_value(area, "part_name")
        label_text = str(part_name)[:MAX_LABEL_LENGTH] if part_name else f"#{index + 1}"
        polygon = self._polygon_points(_area_value(area, "polygon"))

        if polygon:
            path_data = " ".join(
                f"{'M' if i == 0 else 'L'} {_fmt(px)} {_fmt(py)}" for i, (px, py) in enumerate(polygon)
            ) + " Z"
            ET.SubElement(root, "path", {"d": path_data, "class": "cut-area", "data-part-id": str(part_id)})
            if x is None or y is None:
                return
        else:
            x = x or 0
            y = y or 0
            ET.SubElement(root, "rect", {
                "x": _fmt(x),
                "y": _fmt(y),
                "width": _fmt(width),
                "height": _fmt(height),
                "class": "cut-area",
                "data-part-id": str(part_id),
            })

        label = ET.SubElement(root, "text", {
            "x": _fmt(x + width / 2),
            "y": _fmt(y + height / 2),
            "class": "area-label",
        })
        label.text = label_text

    @staticmethod
    def _polygon_points(raw: Any):
        if not raw:
            return []
        points = []
        for point in raw:
            if isinstance(point, dict):
                points.append((float(point["x"]), float(point["y"])))
            else:
                points.append((float(point[0]), float(point[1])))
        return points

    def _document(self, sheet: Sheet, style: str) -> ET.Element:
        root = ET.Element("svg", {
            "xmlns": SVG_NAMESPACE,
            "width": f"{_fmt(sheet.width)}in",
            "height": f"{_fmt(sheet.height)}in",
            "viewBox": f"0 0 {_fmt(sheet.width)} {_fmt(sheet.height)}",
        })
        defs = ET.SubElement(root, "defs")
        style_elem = ET.SubElement(defs, "style")
        style_elem.text = style
        return root

    @staticmethod
    def _metadata(root: ET.Element, title: str, description: str, note: Optional[str] = None):
        metadata = ET.SubElement(root, "metadata")
        ET.SubElement(metadata, "title").text = title
        ET.SubElement(metadata, "description").text = description
        if note:
            ET.SubElement(metadata, "note").text = note

    def _error_document(self, sheet: Any, style: str, message: str) -> str:
        """Minimal valid document carrying a visible error annotation."""
        width = _area_value(sheet, "width") if isinstance(sheet, (dict, Sheet)) else None
        height = _area_value(sheet, "height") if isinstance(sheet, (dict, Sheet)) else None
        try:
            fallback = Sheet(width=float(width), height=float(height))
        except (TypeError, ValueError):
            fallback = Sheet(width=1.0, height=1.0)
        if fallback.width <= 0 or fallback.height <= 0:
            fallback = Sheet(width=1.0, height=1.0)

        root = self._document(fallback, style)
        text = ET.SubElement(root, "text", {"x": "0.1", "y": "0.3", "class": "error"})
        text.text = f"Error: {message}"
        return self._to_string(root)

    def _timestamp(self) -> str:
        return (self.generated_at or datetime.now(timezone.utc)).isoformat()

    @staticmethod
    def _to_string(root: ET.Element) -> str:
        pretty = minidom.parseString(ET.tostring(root, encoding="unicode")).toprettyxml(indent="  ")
        # minidom writes a bare declaration; cutters expect the encoding
        return pretty.replace('<?xml version="1.0" ?>', '<?xml version="1.0" encoding="UTF-8"?>', 1)

    @staticmethod
    def _write(content: str, filepath: str) -> Path:
        filepath = Path(filepath)
        ensure_dir(filepath.parent)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
        return filepath


def render_cut_drawing(layout: Layout, sheet: Any) -> str:
    """
    Convenience function to render the cut drawing for a layout.

    Args:
        layout: Nesting layout
        sheet: Sheet or sheet descriptor

    Returns:
        SVG document string
    """
    return SVGExporter().render_cut_drawing(layout, sheet)


def render_master_drawing(sheet: Any, all_cut_areas: Optional[Iterable[Any]]) -> str:
    """Convenience function to render a sheet's master drawing."""
    return SVGExporter().render_master_drawing(sheet, all_cut_areas)


def master_cut_areas(existing_cut_areas: Optional[Iterable[Any]], layout: Layout, margin: float = 0.0) -> list:
    """
    Historical cut areas followed by the layout's new ones, all in absolute
    sheet coordinates.

    Existing cut areas are margin-adjusted (as passed to the engine), so they
    are moved out by `margin`; new cut areas are already absolute.
    """
    areas = []
    if existing_cut_areas and not isinstance(existing_cut_areas, (str, bytes, dict)):
        areas.extend(
            OccupiedRegion.from_descriptor(area).translated(margin, margin) for area in existing_cut_areas
        )
    areas.extend(layout.new_cut_areas)
    return areas
