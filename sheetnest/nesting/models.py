"""Value types shared by the nesting engine, sheet selector and exporters.

All lengths are inches. Coordinates have their origin at the sheet's
bottom-left corner unless stated otherwise.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sheetnest.utils import to_float

Point = Tuple[float, float]

METERS_TO_INCHES = 39.3701
MILLIMETERS_TO_INCHES = 1 / 25.4
POINTS_PER_INCH = 72.0

# Size used when a part descriptor has no usable dimensions
DEFAULT_PART_SIZE = 2.0


class Unit(str, Enum):
    """Length unit of a part descriptor's raw dimensions."""
    INCH = "inch"
    METER = "meter"
    MILLIMETER = "millimeter"
    POINT = "point"
    AUTO = "auto"  # both dimensions < 1 => meters, else inches

    @classmethod
    def parse(cls, value: Any, default: "Unit" = None) -> "Unit":
        """Parse a unit tag such as "in", "mm" or "meter"."""
        if isinstance(value, Unit):
            return value
        aliases = {
            "in": cls.INCH, "inch": cls.INCH, "inches": cls.INCH, '"': cls.INCH,
            "m": cls.METER, "meter": cls.METER, "meters": cls.METER,
            "mm": cls.MILLIMETER, "millimeter": cls.MILLIMETER, "millimeters": cls.MILLIMETER,
            "pt": cls.POINT, "point": cls.POINT, "points": cls.POINT,
            "auto": cls.AUTO,
        }
        if isinstance(value, str):
            unit = aliases.get(value.strip().lower())
            if unit is not None:
                return unit
        return default if default is not None else cls.AUTO

    def to_inches(self, width: float, height: float) -> Tuple[float, float]:
        """Convert a raw width/height pair to inches."""
        if self == Unit.METER:
            return width * METERS_TO_INCHES, height * METERS_TO_INCHES
        if self == Unit.MILLIMETER:
            return width * MILLIMETERS_TO_INCHES, height * MILLIMETERS_TO_INCHES
        if self == Unit.POINT:
            return width / POINTS_PER_INCH, height / POINTS_PER_INCH
        if self == Unit.AUTO and width < 1 and height < 1:
            return width * METERS_TO_INCHES, height * METERS_TO_INCHES
        return width, height


class RegionType(str, Enum):
    """Origin of an occupied region on a sheet."""
    EXISTING_CUT = "existing_cut"  # cut by a previous job
    NEW_PART = "new_part"  # placed by the current run


class Outline(ABC):
    """Collision outline of a part, positioned with its lower-left at (0, 0)."""

    kind: str = "outline"

    @property
    @abstractmethod
    def points(self) -> List[Point]:
        """Outline vertices in counter-clockwise order."""

    @abstractmethod
    def bounding_size(self) -> Tuple[float, float]:
        """Width and height of the outline's bounding rectangle."""

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        width, height = self.bounding_size()
        return {
            "type": self.kind,
            "width": width,
            "height": height,
            "points": [{"x": x, "y": y} for x, y in self.points],
        }


@dataclass(frozen=True)
class BoundingRectangleOutline(Outline):
    """A part approximated by its axis-aligned bounding rectangle."""
    width: float
    height: float

    kind = "rectangle"

    @property
    def points(self) -> List[Point]:
        return [(0.0, 0.0), (self.width, 0.0), (self.width, self.height), (0.0, self.height)]

    def bounding_size(self) -> Tuple[float, float]:
        return self.width, self.height


@dataclass(frozen=True)
class Part:
    """A flat part to be placed, normalized to inches."""
    id: str
    name: str
    width: float
    height: float
    quantity: int = 1
    material: Optional[str] = None
    outline: Optional[Outline] = None
    placeholder: bool = False  # dimensions fell back to the 2"x2" default
    source: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "area": self.area,
            "aspect_ratio": self.aspect_ratio,
            "quantity": self.quantity,
            "material": self.material,
            "placeholder": self.placeholder,
            "outline": self.outline.to_dict() if self.outline else None,
        }


@dataclass
class Sheet:
    """A sheet of stock that parts are placed on."""
    width: float
    height: float
    id: str = ""
    name: str = ""
    material: Optional[str] = None
    remaining_area: Optional[float] = None

    def __post_init__(self):
        if self.remaining_area is None:
            self.remaining_area = self.area

    @property
    def area(self) -> float:
        return self.width * self.height

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "material": self.material,
            "remaining_area": self.remaining_area,
        }

    @classmethod
    def from_descriptor(cls, data: Any) -> "Sheet":
        """Create from a caller descriptor; missing dimensions become 0."""
        if isinstance(data, Sheet):
            return data
        if not isinstance(data, dict):
            return cls(width=0.0, height=0.0)
        width = to_float(data.get("width"))
        height = to_float(data.get("height"))
        return cls(
            width=width if width and width > 0 else 0.0,
            height=height if height and height > 0 else 0.0,
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            material=data.get("material"),
            remaining_area=to_float(data.get("remaining_area")),
        )


def _parse_polygon(raw: Any) -> Tuple[Point, ...]:
    """Read polygon points given as {"x", "y"} dicts or (x, y) pairs."""
    if not isinstance(raw, (list, tuple)):
        return ()
    points = []
    for item in raw:
        if isinstance(item, dict):
            x, y = to_float(item.get("x")), to_float(item.get("y"))
        elif isinstance(item, (list, tuple)) and len(item) >= 2:
            x, y = to_float(item[0]), to_float(item[1])
        else:
            continue
        if x is not None and y is not None:
            points.append((x, y))
    return tuple(points)


@dataclass(frozen=True)
class OccupiedRegion:
    """An axis-aligned rectangle on a sheet that is unavailable for placement.

    Coordinates are margin-adjusted: (0, 0) is the corner of the usable area,
    `margin` inches in from the sheet edge.
    """
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0
    type: RegionType = RegionType.EXISTING_CUT
    polygon: Tuple[Point, ...] = ()
    part_id: Optional[str] = None
    part_name: Optional[str] = None

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "rotation": self.rotation,
            "type": self.type.value,
            "polygon": [{"x": x, "y": y} for x, y in self.polygon],
            "part_id": self.part_id,
            "part_name": self.part_name,
        }

    @classmethod
    def from_descriptor(cls, data: Any, region_type: RegionType = RegionType.EXISTING_CUT) -> "OccupiedRegion":
        """Create from a region descriptor; missing fields default to 0."""
        if isinstance(data, OccupiedRegion):
            return data
        if not isinstance(data, dict):
            data = {}
        return cls(
            x=to_float(data.get("x")) or 0.0,
            y=to_float(data.get("y")) or 0.0,
            width=to_float(data.get("width")) or 0.0,
            height=to_float(data.get("height")) or 0.0,
            rotation=to_float(data.get("rotation")) or 0.0,
            type=region_type,
            polygon=_parse_polygon(data.get("polygon")),
            part_id=data.get("part_id"),
            part_name=data.get("part_name"),
        )

    def translated(self, dx: float, dy: float) -> "OccupiedRegion":
        """Copy moved by (dx, dy), polygon included."""
        return replace(
            self,
            x=self.x + dx,
            y=self.y + dy,
            polygon=tuple((x + dx, y + dy) for x, y in self.polygon),
        )


@dataclass(frozen=True)
class Placement:
    """Where one part was placed, in absolute sheet coordinates."""
    x: float
    y: float
    width: float  # after rotation
    height: float  # after rotation
    rotation: float
    part: Part
    score: float

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "rotation": self.rotation,
            "part_id": self.part.id,
            "part_name": self.part.name,
            "score": self.score,
        }


@dataclass
class CutArea:
    """Footprint of a newly placed part, for recording against the sheet.

    Coordinates are absolute sheet coordinates, like `Placement`. Use
    `to_region(margin)` to record the area as an existing cut for later runs.
    """
    x: float
    y: float
    width: float
    height: float
    rotation: float
    part_id: str
    part_name: str
    polygon: List[Point] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary (absolute coordinates; see `to_region`)."""
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "rotation": self.rotation,
            "part_id": self.part_id,
            "part_name": self.part_name,
            "polygon": [{"x": x, "y": y} for x, y in self.polygon],
        }

    def to_region(self, margin: float = 0.0) -> dict:
        """Region descriptor in margin-adjusted coordinates, for `existing_cut_areas`."""
        region = self.to_dict()
        region["x"] = self.x - margin
        region["y"] = self.y - margin
        region["polygon"] = [{"x": x - margin, "y": y - margin} for x, y in self.polygon]
        return region


@dataclass
class Layout:
    """Result of one nesting run on one sheet."""
    placements: List[Placement] = field(default_factory=list)
    failed_parts: List[Part] = field(default_factory=list)
    efficiency: float = 0.0
    total_area_used: float = 0.0
    remaining_area: float = 0.0
    utilization_percent: float = 0.0
    new_cut_areas: List[CutArea] = field(default_factory=list)
    sheet: Optional[Sheet] = None
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        """True when every part was placed."""
        return not self.failed_parts and self.error_message is None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "placements": [p.to_dict() for p in self.placements],
            "failed_parts": [p.to_dict() for p in self.failed_parts],
            "efficiency": self.efficiency,
            "total_area_used": self.total_area_used,
            "remaining_area": self.remaining_area,
            "utilization_percent": self.utilization_percent,
            "new_cut_areas": [c.to_dict() for c in self.new_cut_areas],
            "sheet": self.sheet.to_dict() if self.sheet else None,
            "error_message": self.error_message,
        }


def expand_quantities(parts: Sequence[Any]) -> List[Any]:
    """Repeat each dict descriptor `quantity` times, suffixing ids.

    Non-dict entries (already-normalized parts) are passed through once.
    """
    expanded = []
    for index, part in enumerate(parts):
        if not isinstance(part, dict):
            expanded.append(part)
            continue
        quantity = to_float(part.get("quantity"))
        count = int(quantity) if quantity and quantity >= 1 else 1
        if count == 1:
            expanded.append(part)
            continue
        base_id = part.get("id") or f"part-{index + 1}"
        for copy in range(count):
            expanded.append({**part, "id": f"{base_id}-{copy + 1}", "quantity": 1})
    return expanded
