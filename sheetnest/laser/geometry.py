"""
Bounding geometry for part outlines.

Reads coordinates out of SVG path data (or plain point lists) and derives
axis-aligned bounding boxes and clearance outlines from them. Parsing is
deliberately loose: arcs and relative commands are read as raw coordinate
pairs, which is enough for the bounding-rectangle approximation used by the
nesting engine.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

from sheetnest.utils import to_float

Point = Tuple[float, float]

POINTS_PER_INCH = 72.0

_COMMAND_PATTERN = re.compile(r"[MLHVCSQTAZ][\s,]*([^MLHVCSQTAZ]*)", re.IGNORECASE)
_NUMBER_PATTERN = re.compile(r"[\d.-]+")


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned bounding box."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


UNIT_BOUNDS = Bounds(0.0, 0.0, 1.0, 1.0)


def parse_path_coordinates(path: str) -> List[Point]:
    """
    Extract coordinate pairs from SVG path data.

    Every command's parameters are split on whitespace/commas and read
    two at a time; a trailing unpaired value is ignored.

    Args:
        path: SVG path data, e.g. "M 0 0 L 10 0 L 10 5 Z"

    Returns:
        List of (x, y) points in path order
    """
    if not isinstance(path, str):
        return []

    coords = []
    for match in _COMMAND_PATTERN.finditer(path):
        params = []
        for token in re.split(r"[\s,]+", match.group(1).strip()):
            value = to_float(token) if token else None
            if value is not None:
                params.append(value)
        for i in range(0, len(params) - 1, 2):
            coords.append((params[i], params[i + 1]))
    return coords


def _points_from(outline_data: Any) -> List[Point]:
    if isinstance(outline_data, str):
        return parse_path_coordinates(outline_data)
    if not isinstance(outline_data, (list, tuple)):
        return []

    points = []
    for item in outline_data:
        if isinstance(item, dict):
            x, y = to_float(item.get("x")), to_float(item.get("y"))
        elif isinstance(item, (list, tuple)) and len(item) >= 2:
            x, y = to_float(item[0]), to_float(item[1])
        else:
            continue
        if x is not None and y is not None:
            points.append((x, y))
    return points


def extract_bounds(outline_data: Union[str, Sequence[Any], None]) -> Bounds:
    """
    Compute the bounding box of path data or a point sequence.

    Never raises: input with no extractable coordinate pairs yields a
    1x1 box at the origin.
    """
    points = _points_from(outline_data)
    if not points:
        return UNIT_BOUNDS

    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    min_x, min_y = min(xs), min(ys)
    return Bounds(x=min_x, y=min_y, width=max(xs) - min_x, height=max(ys) - min_y)


def svg_path_size_inches(path: str, fallback: float = 2.0) -> Tuple[float, float]:
    """
    Estimate a part's size from SVG path data drawn in points.

    All numbers in the path are split into alternating x/y values and the
    span of each is converted from points (1/72") to inches. Paths with
    fewer than four numbers give a fallback x fallback square.
    """
    numbers = []
    if isinstance(path, str):
        for token in _NUMBER_PATTERN.findall(path):
            value = to_float(token)
            if value is not None:
                numbers.append(value)

    if len(numbers) < 4:
        return fallback, fallback

    xs = numbers[0::2]
    ys = numbers[1::2]
    return (max(xs) - min(xs)) / POINTS_PER_INCH, (max(ys) - min(ys)) / POINTS_PER_INCH


def dilate(bounds: Bounds, radius: float) -> Bounds:
    """Grow a bounding box by `radius` on every side."""
    return Bounds(
        x=bounds.x - radius,
        y=bounds.y - radius,
        width=bounds.width + 2 * radius,
        height=bounds.height + 2 * radius,
    )


@dataclass(frozen=True)
class DilatedOutline:
    """Clearance rectangle around a part's original path."""
    bounds: Bounds
    radius: float
    original_path: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {**self.bounds.to_dict(), "radius": self.radius, "original_path": self.original_path}


def create_dilated_outline(svg_path: str, dilation_radius: float = 0.05) -> DilatedOutline:
    """Bounding box of `svg_path` expanded by `dilation_radius`."""
    return DilatedOutline(
        bounds=dilate(extract_bounds(svg_path), dilation_radius),
        radius=dilation_radius,
        original_path=svg_path if isinstance(svg_path, str) else None,
    )
