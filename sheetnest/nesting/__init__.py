"""Nesting module for placing parts on sheet stock.

Provides the rectangle nesting engine and sheet selection across an
inventory of candidate sheets.
"""

from sheetnest.nesting.models import (
    Unit,
    RegionType,
    Outline,
    BoundingRectangleOutline,
    Part,
    Sheet,
    OccupiedRegion,
    Placement,
    CutArea,
    Layout,
    expand_quantities,
)
from sheetnest.nesting.engine import (
    NestingConfig,
    NestingEngine,
    create_engine,
    nest_parts,
)
from sheetnest.nesting.selector import (
    SelectionOptions,
    SelectionResult,
    SheetCandidate,
    SheetSelector,
    find_optimal_sheet,
)

__all__ = [
    "Unit",
    "RegionType",
    "Outline",
    "BoundingRectangleOutline",
    "Part",
    "Sheet",
    "OccupiedRegion",
    "Placement",
    "CutArea",
    "Layout",
    "expand_quantities",
    "NestingConfig",
    "NestingEngine",
    "create_engine",
    "nest_parts",
    "SelectionOptions",
    "SelectionResult",
    "SheetCandidate",
    "SheetSelector",
    "find_optimal_sheet",
]
