"""Choosing the best sheet from an inventory for a set of parts."""

from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, List, Optional, Sequence

from sheetnest.config import Settings, get_settings
from sheetnest.nesting.engine import NestingConfig, NestingEngine
from sheetnest.nesting.models import Layout, Sheet
from sheetnest.utils import get_logger, to_float

logger = get_logger("nesting.selector")

# Efficiencies closer than this are ranked by wasted area instead
EFFICIENCY_TIE = 0.05

INSUFFICIENT_AREA = "No sheets with sufficient area found"
NO_FIT = "Parts do not fit on any available sheet"


@dataclass
class SelectionOptions:
    """Options for sheet selection."""
    area_buffer: float = 0.5  # Slack for bounding-rectangle packing losses
    nesting: NestingConfig = field(default_factory=NestingConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"area_buffer": self.area_buffer, **self.nesting.to_dict()}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "SelectionOptions":
        """Create from dictionary; engine keys configure the nesting run."""
        data = data or {}
        buffer = to_float(data.get("area_buffer"))
        return cls(
            area_buffer=buffer if buffer is not None and buffer >= 0 else 0.5,
            nesting=NestingConfig.from_dict(data),
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SelectionOptions":
        """Create from application settings."""
        settings = settings or get_settings()
        return cls(area_buffer=settings.area_buffer, nesting=NestingConfig.from_settings(settings))


@dataclass
class SheetCandidate:
    """A sheet that fits every part, with its trial layout."""
    sheet: Sheet
    layout: Layout
    efficiency: float
    wasted_area: float

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "sheet": self.sheet.to_dict(),
            "efficiency": self.efficiency,
            "wasted_area": self.wasted_area,
            "layout": self.layout.to_dict(),
        }


@dataclass
class SelectionResult:
    """Result of sheet selection."""
    success: bool
    optimal_sheet: Optional[Sheet] = None
    layout: Optional[Layout] = None
    alternatives: List[SheetCandidate] = field(default_factory=list)
    error: Optional[str] = None
    required_area: float = 0.0
    candidate_count: int = 0
    viable_count: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "optimal_sheet": self.optimal_sheet.to_dict() if self.optimal_sheet else None,
            "layout": self.layout.to_dict() if self.layout else None,
            "alternatives": [c.to_dict() for c in self.alternatives],
            "error": self.error,
            "required_area": self.required_area,
            "candidate_count": self.candidate_count,
            "viable_count": self.viable_count,
        }


def compare_candidates(a: SheetCandidate, b: SheetCandidate) -> float:
    """Higher efficiency first; near-equal efficiencies prefer less waste."""
    if abs(a.efficiency - b.efficiency) > EFFICIENCY_TIE:
        return b.efficiency - a.efficiency
    return a.wasted_area - b.wasted_area


class SheetSelector:
    """
    Picks the sheet that a part list nests onto most efficiently.

    Sheets are pre-filtered by remaining area, then every viable sheet gets
    a full nesting run. Only sheets that take every part are ranked.
    """

    def __init__(self, options: Optional[SelectionOptions] = None):
        self.options = options or SelectionOptions()
        self.engine = NestingEngine(self.options.nesting)

    def required_area(self, parts: Sequence[Any]) -> float:
        """Total part area (with quantities) grown by the area buffer."""
        total = sum(part.area * part.quantity for part in self.engine.normalize_parts(parts))
        return total * (1 + self.options.area_buffer)

    def find_optimal_sheet(self, parts: Sequence[Any], candidate_sheets: Sequence[Any]) -> SelectionResult:
        """
        Find the best sheet for a set of parts.

        The area prefilter counts every copy of a part (`quantity`), but each
        descriptor is nested once; a sheet "fits" when one copy of every
        descriptor is placed. Expand quantities with `expand_quantities`
        first to nest every copy.

        Args:
            parts: Part descriptors
            candidate_sheets: Sheet descriptors with `remaining_area`

        Returns:
            SelectionResult; `success` is False when no sheet has enough
            area or no sheet fits every part
        """
        if not hasattr(candidate_sheets, "__iter__") or isinstance(candidate_sheets, (str, bytes, dict)):
            candidate_sheets = []
        sheets = [Sheet.from_descriptor(s) for s in candidate_sheets]
        # Normalize once so one-shot iterables are not consumed twice
        parts = self.engine.normalize_parts(parts)
        required = self.required_area(parts)

        viable = [sheet for sheet in sheets if sheet.remaining_area >= required]
        if not viable:
            logger.debug(f"No sheet has {required:.1f} in² available ({len(sheets)} candidates)")
            return SelectionResult(
                success=False,
                error=INSUFFICIENT_AREA,
                required_area=required,
                candidate_count=len(sheets),
            )

        candidates = []
        for sheet in viable:
            try:
                layout = self.engine.place(parts, sheet)
            except Exception as e:
                logger.warning(f"Nesting failed for sheet {sheet.id or sheet.name or '?'}: {e}")
                continue

            if layout.error_message:
                logger.warning(f"Nesting failed for sheet {sheet.id or sheet.name or '?'}: {layout.error_message}")
                continue
            if layout.failed_parts:
                logger.debug(f"Sheet {sheet.id or sheet.name or '?'} left {len(layout.failed_parts)} parts unplaced")
                continue

            candidates.append(SheetCandidate(
                sheet=sheet,
                layout=layout,
                efficiency=layout.efficiency,
                wasted_area=sheet.remaining_area - layout.total_area_used,
            ))

        if not candidates:
            return SelectionResult(
                success=False,
                error=NO_FIT,
                required_area=required,
                candidate_count=len(sheets),
                viable_count=len(viable),
            )

        ranked = sorted(candidates, key=cmp_to_key(compare_candidates))
        best = ranked[0]
        logger.debug(
            f"Selected sheet {best.sheet.id or best.sheet.name or '?'} "
            f"({best.efficiency * 100:.1f}% efficient, {len(ranked) - 1} alternatives)"
        )
        return SelectionResult(
            success=True,
            optimal_sheet=best.sheet,
            layout=best.layout,
            alternatives=ranked[1:],
            required_area=required,
            candidate_count=len(sheets),
            viable_count=len(viable),
        )


def find_optimal_sheet(
    parts: Sequence[Any],
    sheets: Sequence[Any],
    options: Optional[Any] = None,
) -> SelectionResult:
    """
    Find the best sheet for a set of parts.

    Args:
        parts: Part descriptors
        sheets: Candidate sheet descriptors
        options: SelectionOptions or a dict such as {"area_buffer": 0.5}

    Returns:
        Selection result
    """
    if not isinstance(options, SelectionOptions):
        options = SelectionOptions.from_dict(options if isinstance(options, dict) else None)
    return SheetSelector(options).find_optimal_sheet(parts, sheets)
