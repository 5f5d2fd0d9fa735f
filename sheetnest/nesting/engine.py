"""Bottom-left fill nesting for rectangular parts on a sheet.

Places parts around areas already cut from the sheet, trying each allowed
rotation and scoring candidate anchor points next to occupied regions.
"""

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from sheetnest.config import Settings, get_settings
from sheetnest.laser.geometry import svg_path_size_inches
from sheetnest.nesting.models import (
    DEFAULT_PART_SIZE,
    BoundingRectangleOutline,
    CutArea,
    Layout,
    OccupiedRegion,
    Part,
    Placement,
    Point,
    RegionType,
    Sheet,
    Unit,
)
from sheetnest.utils import format_area, get_logger, to_float

logger = get_logger("nesting.engine")

# Edges closer than this are treated as shared
EDGE_TOLERANCE = 0.01
ADJACENCY_BONUS = 10.0

_DIMENSION_KEYS = (
    ("width", "height"),
    ("layout_x", "layout_y"),
    ("bounding_box_x", "bounding_box_y"),
)
DEFAULT_ROTATIONS = (0, 90, 180, 270)


def _parse_angles(value: Any) -> Tuple[float, ...]:
    """Numeric rotation angles from a list or tuple; the default set otherwise."""
    if not isinstance(value, (list, tuple)):
        return DEFAULT_ROTATIONS
    angles = tuple(a for a in (to_float(v) for v in value) if a is not None)
    return angles or DEFAULT_ROTATIONS


@dataclass
class NestingConfig:
    """Configuration for the nesting engine (lengths in inches)."""
    allow_rotation: bool = True
    rotation_angles: Tuple[float, ...] = DEFAULT_ROTATIONS
    spacing: float = 0.1  # Minimum gap between parts
    margin: float = 0.2  # Unusable border on each sheet edge
    default_unit: Unit = Unit.AUTO  # For descriptors without a "unit" tag

    def __post_init__(self):
        self.rotation_angles = _parse_angles(self.rotation_angles)
        self.default_unit = Unit.parse(self.default_unit)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "allow_rotation": self.allow_rotation,
            "rotation_angles": list(self.rotation_angles),
            "spacing": self.spacing,
            "margin": self.margin,
            "default_unit": self.default_unit.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NestingConfig":
        """Create from dictionary; absent keys keep their defaults."""
        defaults = cls()
        spacing = to_float(data.get("spacing"))
        margin = to_float(data.get("margin"))
        return cls(
            allow_rotation=bool(data.get("allow_rotation", defaults.allow_rotation)),
            rotation_angles=_parse_angles(data.get("rotation_angles")),
            spacing=spacing if spacing is not None and spacing >= 0 else defaults.spacing,
            margin=margin if margin is not None and margin >= 0 else defaults.margin,
            default_unit=Unit.parse(data.get("default_unit"), defaults.default_unit),
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "NestingConfig":
        """Create from application settings."""
        settings = settings or get_settings()
        return cls(
            allow_rotation=settings.allow_rotation,
            rotation_angles=tuple(settings.rotation_angles),
            spacing=settings.spacing,
            margin=settings.margin,
            default_unit=Unit.parse(settings.default_unit),
        )


@dataclass(frozen=True)
class _Rect:
    """Candidate rectangle in margin-adjusted coordinates."""
    x: float
    y: float
    width: float
    height: float


class NestingEngine:
    """
    Rectangle nesting engine.

    Parts are normalized to inches, sorted largest first, and placed one at
    a time at the best-scoring valid anchor point. Regions already cut from
    the sheet are avoided. Parts that cannot be placed are reported in
    `Layout.failed_parts`; that is not an error.
    """

    def __init__(self, config: Optional[NestingConfig] = None):
        """
        Initialize nesting engine.

        Args:
            config: Nesting configuration
        """
        self.config = config or NestingConfig()

    @property
    def spacing(self) -> float:
        return self.config.spacing

    @property
    def margin(self) -> float:
        return self.config.margin

    def place(
        self,
        parts: Sequence[Any],
        sheet: Any,
        existing_cut_areas: Optional[Iterable[Any]] = None,
    ) -> Layout:
        """
        Nest parts on a sheet around previously cut areas.

        Args:
            parts: Part descriptors (dicts) or normalized Part objects
            sheet: Sheet descriptor (dict) or Sheet
            existing_cut_areas: Region descriptors already cut from the sheet

        Returns:
            Layout with placements, failed parts and utilization metrics
        """
        sheet = Sheet.from_descriptor(sheet)
        normalized: List[Part] = []

        try:
            normalized = self.normalize_parts(parts)
            return self._place(normalized, sheet, existing_cut_areas)
        except Exception as e:
            logger.error(f"Nesting error on sheet {sheet.id or '?'}: {e}")
            return Layout(
                failed_parts=list(normalized),
                remaining_area=sheet.area,
                sheet=sheet,
                error_message=str(e),
            )

    def _place(self, parts: List[Part], sheet: Sheet, existing_cut_areas) -> Layout:
        usable_width = sheet.width - 2 * self.margin
        usable_height = sheet.height - 2 * self.margin

        # Largest first; sorted() is stable so equal areas keep input order
        sorted_parts = sorted(parts, key=lambda p: p.area, reverse=True)

        existing = self.process_existing_cut_areas(existing_cut_areas)
        occupied: Tuple[OccupiedRegion, ...] = tuple(existing)

        placements = []
        failed_parts = []
        total_area_used = 0.0

        for part in sorted_parts:
            best = self.find_best_placement(part, usable_width, usable_height, occupied)
            if best is None:
                logger.debug(f"No position for part {part.name or part.id} ({part.width:.2f}x{part.height:.2f})")
                failed_parts.append(part)
                continue

            rect, rotation, score = best
            placements.append(Placement(
                x=rect.x + self.margin,
                y=rect.y + self.margin,
                width=rect.width,
                height=rect.height,
                rotation=rotation,
                part=part,
                score=score,
            ))
            occupied = occupied + (OccupiedRegion(
                x=rect.x,
                y=rect.y,
                width=rect.width,
                height=rect.height,
                rotation=rotation,
                type=RegionType.NEW_PART,
                part_id=part.id,
                part_name=part.name,
            ),)
            total_area_used += rect.width * rect.height

        sheet_area = sheet.area
        efficiency = total_area_used / sheet_area if sheet_area > 0 else 0.0

        layout = Layout(
            placements=placements,
            failed_parts=failed_parts,
            efficiency=efficiency,
            total_area_used=total_area_used,
            remaining_area=sheet_area - total_area_used - self.existing_cut_area(existing),
            utilization_percent=efficiency * 100,
            new_cut_areas=self.generate_cut_areas(placements),
            sheet=sheet,
        )
        logger.debug(
            f"Placed {len(placements)}/{len(parts)} parts on "
            f"{sheet.width:g}x{sheet.height:g} sheet, {format_area(total_area_used)} used"
        )
        return layout

    def normalize_parts(self, parts: Optional[Sequence[Any]]) -> List[Part]:
        """Normalize part descriptors to inch-based Part records."""
        if parts is None or isinstance(parts, (str, bytes, dict)):
            return []
        try:
            parts = list(parts)
        except TypeError:
            return []
        return [self.normalize_part(part, index) for index, part in enumerate(parts)]

    def normalize_part(self, data: Any, index: int = 0) -> Part:
        """
        Normalize one part descriptor.

        Dimensions come from width/height, then layout_x/layout_y, then
        bounding_box_x/bounding_box_y, defaulting to 2" when absent. A
        descriptor without a width but with `svg_path` is sized from the
        path (drawn in points).
        """
        if isinstance(data, Part):
            return data
        if not isinstance(data, dict):
            data = {}

        width = self._first_dimension(data, 0)
        height = self._first_dimension(data, 1)
        placeholder = width is None or height is None
        width = width if width is not None else DEFAULT_PART_SIZE
        height = height if height is not None else DEFAULT_PART_SIZE

        unit = Unit.parse(data.get("unit"), self.config.default_unit)
        if unit == Unit.AUTO and width < 1 and height < 1:
            logger.debug(f"Assuming meters for part {data.get('name') or index}: {width}x{height}")
        width, height = unit.to_inches(width, height)

        svg_path = data.get("svg_path")
        explicit_width = to_float(data.get("width"))
        if svg_path and not (explicit_width and explicit_width > 0):
            width, height = svg_path_size_inches(svg_path, fallback=0.0)
            placeholder = width <= 0 or height <= 0
            if placeholder:
                width = height = DEFAULT_PART_SIZE

        if placeholder:
            logger.warning(
                f"Part {data.get('name') or data.get('id') or index} has no usable dimensions; "
                f"using {DEFAULT_PART_SIZE:g}x{DEFAULT_PART_SIZE:g} placeholder"
            )

        quantity = to_float(data.get("quantity"))
        return Part(
            id=str(data.get("id") if data.get("id") is not None else f"part-{index + 1}"),
            name=str(data.get("name") or ""),
            width=width,
            height=height,
            quantity=int(quantity) if quantity and quantity >= 1 else 1,
            material=data.get("material"),
            outline=BoundingRectangleOutline(width, height),
            placeholder=placeholder,
            source=data,
        )

    @staticmethod
    def _first_dimension(data: dict, axis: int) -> Optional[float]:
        for keys in _DIMENSION_KEYS:
            value = to_float(data.get(keys[axis]))
            if value is not None and value > 0:
                return value
        return None

    def rotation_options(self) -> Tuple[float, ...]:
        """Rotations tried for each part, in order."""
        if not self.config.allow_rotation:
            return (0,)
        return tuple(self.config.rotation_angles) or (0,)

    @staticmethod
    def rotated_dimensions(part: Part, rotation: float) -> Tuple[float, float]:
        """Get width and height after a rotation."""
        if rotation % 180 == 90:
            return part.height, part.width
        return part.width, part.height

    def find_best_placement(
        self,
        part: Part,
        sheet_width: float,
        sheet_height: float,
        occupied: Sequence[OccupiedRegion],
    ) -> Optional[Tuple[_Rect, float, float]]:
        """
        Find the best-scoring valid position for a part.

        Coordinates are margin-adjusted (usable area starts at 0, 0). Only a
        strictly higher score replaces the current best, so the first
        maximum in rotation/candidate order wins.

        Returns:
            (rectangle, rotation, score), or None if the part fits nowhere
        """
        best = None
        best_score = -math.inf

        for rotation in self.rotation_options():
            width, height = self.rotated_dimensions(part, rotation)
            if width > sheet_width or height > sheet_height:
                continue

            for x, y in self.generate_candidate_positions(width, height, sheet_width, sheet_height, occupied):
                rect = _Rect(x, y, width, height)
                if not self.is_valid_placement(rect, occupied):
                    continue
                score = self.placement_score(rect, occupied)
                if score > best_score:
                    best_score = score
                    best = (rect, rotation, score)

        return best

    def generate_candidate_positions(
        self,
        width: float,
        height: float,
        sheet_width: float,
        sheet_height: float,
        occupied: Sequence[OccupiedRegion],
    ) -> List[Point]:
        """
        Candidate anchor points: the origin, then right of, above, and
        diagonally above-right of each occupied region in order.
        """
        spacing = self.spacing
        candidates = [(0.0, 0.0)]
        for region in occupied:
            candidates.append((region.right + spacing, region.y))
            candidates.append((region.x, region.top + spacing))
            candidates.append((region.right + spacing, region.top + spacing))

        return [
            (x, y) for x, y in candidates
            if x + width <= sheet_width and y + height <= sheet_height and x >= 0 and y >= 0
        ]

    def is_valid_placement(self, rect: Any, occupied: Sequence[OccupiedRegion]) -> bool:
        """Check that a rectangle clears every occupied region."""
        return not any(self.rectangles_overlap(rect, region) for region in occupied)

    def rectangles_overlap(self, a: Any, b: Any) -> bool:
        """Check if two rectangles come closer than the spacing on both axes."""
        spacing = self.spacing
        return not (
            a.x + a.width + spacing <= b.x or
            b.x + b.width + spacing <= a.x or
            a.y + a.height + spacing <= b.y or
            b.y + b.height + spacing <= a.y
        )

    def placement_score(self, rect: Any, occupied: Sequence[OccupiedRegion]) -> float:
        """Score a candidate: bottom-left preference, shared edges, little waste."""
        position_score = -(rect.x + rect.y * 2)
        adjacency_score = self.adjacency_score(rect, occupied)
        waste_score = -self.wasted_space(rect, occupied)
        return position_score + adjacency_score + waste_score

    def adjacency_score(self, rect: Any, occupied: Sequence[OccupiedRegion]) -> float:
        """Bonus for each candidate edge that lines up with a region's opposite edge."""
        score = 0.0
        right = rect.x + rect.width
        top = rect.y + rect.height
        for region in occupied:
            if abs(right - region.x) < EDGE_TOLERANCE:
                score += ADJACENCY_BONUS
            if abs(rect.x - region.right) < EDGE_TOLERANCE:
                score += ADJACENCY_BONUS
            if abs(top - region.y) < EDGE_TOLERANCE:
                score += ADJACENCY_BONUS
            if abs(rect.y - region.top) < EDGE_TOLERANCE:
                score += ADJACENCY_BONUS
        return score

    def wasted_space(self, rect: Any, occupied: Sequence[OccupiedRegion]) -> float:
        """Gap left to the nearest obstacle on the right plus the one above."""
        return self.space_to_right(rect, occupied) + self.space_above(rect, occupied)

    @staticmethod
    def space_to_right(rect: Any, occupied: Sequence[OccupiedRegion]) -> float:
        right = rect.x + rect.width
        gaps = [
            region.x - right
            for region in occupied
            if region.y < rect.y + rect.height and region.top > rect.y and region.x > right
        ]
        return min(gaps) if gaps else 0.0

    @staticmethod
    def space_above(rect: Any, occupied: Sequence[OccupiedRegion]) -> float:
        top = rect.y + rect.height
        gaps = [
            region.y - top
            for region in occupied
            if region.x < rect.x + rect.width and region.right > rect.x and region.y > top
        ]
        return min(gaps) if gaps else 0.0

    @staticmethod
    def process_existing_cut_areas(existing_cut_areas: Optional[Iterable[Any]]) -> List[OccupiedRegion]:
        """Convert region descriptors to `existing_cut` occupied regions."""
        if not existing_cut_areas or isinstance(existing_cut_areas, (str, bytes, dict)):
            return []
        return [OccupiedRegion.from_descriptor(area, RegionType.EXISTING_CUT) for area in existing_cut_areas]

    @staticmethod
    def existing_cut_area(regions: Iterable[OccupiedRegion]) -> float:
        """Total area of previously cut regions."""
        return sum(region.area for region in regions)

    def generate_cut_areas(self, placements: Sequence[Placement]) -> List[CutArea]:
        """Cut-area records (with footprint polygons) for new placements."""
        cut_areas = []
        for placement in placements:
            part = placement.part
            cut_areas.append(CutArea(
                x=placement.x,
                y=placement.y,
                width=placement.width,
                height=placement.height,
                rotation=placement.rotation,
                part_id=part.id,
                part_name=part.name,
                polygon=self.rectangle_polygon(
                    placement.x + (placement.width - part.width) / 2,
                    placement.y + (placement.height - part.height) / 2,
                    part.width,
                    part.height,
                    placement.rotation,
                ),
            ))
        return cut_areas

    @staticmethod
    def rectangle_polygon(x: float, y: float, width: float, height: float, rotation: float) -> List[Point]:
        """Corners of a rectangle rotated about its centre."""
        center_x = x + width / 2
        center_y = y + height / 2
        radians = math.radians(rotation)
        cos_r, sin_r = math.cos(radians), math.sin(radians)

        corners = [
            (-width / 2, -height / 2),
            (width / 2, -height / 2),
            (width / 2, height / 2),
            (-width / 2, height / 2),
        ]
        # Rounded so quarter turns give exact corners instead of 1e-16 noise
        return [
            (round(center_x + cx * cos_r - cy * sin_r, 9), round(center_y + cx * sin_r + cy * cos_r, 9))
            for cx, cy in corners
        ]

    def export_layout(self, layout: Layout) -> str:
        """Export layout as text description."""
        sheet = layout.sheet
        lines = [
            "; Sheet layout",
            f"; Sheet: {sheet.width:g}x{sheet.height:g}in" if sheet else "; Sheet: unknown",
            f"; Utilization: {layout.utilization_percent:.1f}%",
            f"; Parts placed: {len(layout.placements)}",
            f"; Remaining area: {format_area(layout.remaining_area)}",
            "",
        ]

        for i, placement in enumerate(layout.placements):
            lines.append(f"; Part {i + 1}: {placement.part.name or placement.part.id}")
            lines.append(f";   Position: ({placement.x:.2f}, {placement.y:.2f})")
            lines.append(f";   Size: {placement.width:.2f}x{placement.height:.2f}")
            lines.append(f";   Rotation: {placement.rotation:g}°")
            lines.append("")

        if layout.failed_parts:
            lines.append(f"; Unplaced parts ({len(layout.failed_parts)}):")
            for part in layout.failed_parts:
                lines.append(f";   - {part.name or part.id} ({part.width:.2f}x{part.height:.2f})")

        return "\n".join(lines)


# Convenience functions
def create_engine(
    spacing: float = 0.1,
    margin: float = 0.2,
    allow_rotation: bool = True,
    rotation_angles: Sequence[float] = (0, 90, 180, 270),
) -> NestingEngine:
    """Create a nesting engine with specified settings."""
    config = NestingConfig(
        allow_rotation=allow_rotation,
        rotation_angles=tuple(rotation_angles),
        spacing=spacing,
        margin=margin,
    )
    return NestingEngine(config=config)


def nest_parts(
    parts: Sequence[Any],
    sheet: Any,
    existing_cut_areas: Optional[Iterable[Any]] = None,
    **kwargs,
) -> Layout:
    """
    Nest parts on a sheet.

    Args:
        parts: Part descriptors
        sheet: Sheet descriptor
        existing_cut_areas: Regions already cut from the sheet
        **kwargs: Engine settings passed to create_engine

    Returns:
        Nesting layout
    """
    return create_engine(**kwargs).place(parts, sheet, existing_cut_areas)
