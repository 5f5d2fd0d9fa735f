"""Tests for the nesting engine."""

import pytest

from sheetnest.nesting.engine import (
    NestingConfig,
    NestingEngine,
    create_engine,
    nest_parts,
)
from sheetnest.nesting.models import (
    BoundingRectangleOutline,
    Layout,
    OccupiedRegion,
    Part,
    RegionType,
    Sheet,
    Unit,
    expand_quantities,
)


def _separated(a, b, spacing, tolerance=1e-9):
    """True if two placements keep at least `spacing` apart on some axis."""
    return (
        a.x + a.width + spacing <= b.x + tolerance or
        b.x + b.width + spacing <= a.x + tolerance or
        a.y + a.height + spacing <= b.y + tolerance or
        b.y + b.height + spacing <= a.y + tolerance
    )


@pytest.fixture
def tight_engine():
    """Engine with no margin and no spacing."""
    return NestingEngine(NestingConfig(spacing=0, margin=0))


@pytest.fixture
def mixed_parts():
    """A realistic batch of brackets and plates."""
    return [
        {"id": "plate-a", "name": "Base plate", "width": 12, "height": 8},
        {"id": "plate-b", "name": "Top plate", "width": 12, "height": 6},
        {"id": "bracket-1", "name": "Bracket", "width": 4, "height": 3},
        {"id": "bracket-2", "name": "Bracket", "width": 4, "height": 3},
        {"id": "gusset", "name": "Gusset", "width": 3, "height": 3},
        {"id": "strip", "name": "Strip", "width": 20, "height": 1.5},
        {"id": "tab-1", "name": "Tab", "width": 1, "height": 2},
        {"id": "tab-2", "name": "Tab", "width": 1, "height": 2},
    ]


class TestNestingConfig:
    """Tests for NestingConfig dataclass."""

    def test_default_config(self):
        """Test default configuration."""
        config = NestingConfig()

        assert config.allow_rotation is True
        assert config.rotation_angles == (0, 90, 180, 270)
        assert config.spacing == 0.1
        assert config.margin == 0.2
        assert config.default_unit == Unit.AUTO

    def test_to_dict(self):
        """Test config serialization."""
        d = NestingConfig(margin=0.5).to_dict()

        assert d["margin"] == 0.5
        assert d["rotation_angles"] == [0, 90, 180, 270]
        assert d["default_unit"] == "auto"

    def test_from_dict(self):
        """Test config deserialization."""
        config = NestingConfig.from_dict({
            "allow_rotation": False,
            "rotation_angles": [0, 90],
            "margin": 0.25,
            "default_unit": "mm",
        })

        assert config.allow_rotation is False
        assert config.rotation_angles == (0, 90)
        assert config.margin == 0.25
        assert config.spacing == 0.1
        assert config.default_unit == Unit.MILLIMETER

    def test_from_dict_keeps_zero(self):
        """Zero spacing and margin are real values, not missing ones."""
        config = NestingConfig.from_dict({"spacing": 0, "margin": 0})

        assert config.spacing == 0
        assert config.margin == 0

    def test_rotation_angles_coerced(self):
        """Angles are read as numbers; unusable values fall back to the default set."""
        assert NestingConfig.from_dict({"rotation_angles": ["0", "90"]}).rotation_angles == (0, 90)
        assert NestingConfig.from_dict({"rotation_angles": [90, "x", None]}).rotation_angles == (90,)
        assert NestingConfig.from_dict({"rotation_angles": 90}).rotation_angles == (0, 90, 180, 270)
        assert NestingConfig.from_dict({"rotation_angles": ["x"]}).rotation_angles == (0, 90, 180, 270)
        assert NestingConfig(rotation_angles=[180]).rotation_angles == (180,)

    def test_constructor_parses_unit(self):
        """A unit given as text is parsed on construction."""
        assert NestingConfig(default_unit="inch").default_unit == Unit.INCH
        assert NestingConfig(default_unit="furlong").default_unit == Unit.AUTO


class TestPartNormalization:
    """Tests for turning part descriptors into Part records."""

    @pytest.fixture
    def engine(self):
        return NestingEngine()

    def test_width_and_height(self, engine):
        """Test plain inch dimensions."""
        part = engine.normalize_part({"id": "p1", "name": "Panel", "width": 6, "height": 4})

        assert part.id == "p1"
        assert part.name == "Panel"
        assert part.width == 6
        assert part.height == 4
        assert part.area == 24
        assert part.aspect_ratio == 1.5
        assert part.placeholder is False

    def test_rectangle_outline(self, engine):
        """Parts carry a bounding-rectangle outline."""
        part = engine.normalize_part({"width": 6, "height": 4})

        assert isinstance(part.outline, BoundingRectangleOutline)
        assert part.outline.kind == "rectangle"
        assert part.outline.points == [(0.0, 0.0), (6, 0.0), (6, 4), (0.0, 4)]

    def test_dimension_aliases(self, engine):
        """Test layout and bounding box dimension fallbacks."""
        layout_part = engine.normalize_part({"layout_x": 5, "layout_y": 3})
        bbox_part = engine.normalize_part({"bounding_box_x": 7, "bounding_box_y": 2})

        assert (layout_part.width, layout_part.height) == (5, 3)
        assert (bbox_part.width, bbox_part.height) == (7, 2)

    def test_missing_dimensions_use_placeholder(self, engine):
        """Test the 2x2 fallback for parts without dimensions."""
        part = engine.normalize_part({"name": "Mystery"})

        assert part.width == 2.0
        assert part.height == 2.0
        assert part.placeholder is True

    def test_zero_and_garbage_dimensions(self, engine):
        """Non-positive or non-numeric sizes fall back to the default."""
        part = engine.normalize_part({"width": 0, "height": "tall"})

        assert (part.width, part.height) == (2.0, 2.0)
        assert part.placeholder is True

    def test_small_dimensions_assumed_meters(self, engine):
        """Both dimensions below 1 are read as meters."""
        part = engine.normalize_part({"width": 0.5, "height": 0.25})

        assert part.width == pytest.approx(19.68505)
        assert part.height == pytest.approx(9.842525)

    def test_one_small_dimension_stays_inches(self, engine):
        """Only one dimension below 1 is not converted."""
        part = engine.normalize_part({"width": 0.5, "height": 4})

        assert (part.width, part.height) == (0.5, 4)

    def test_explicit_unit_wins(self, engine):
        """Unit tags override the meters heuristic."""
        inches = engine.normalize_part({"width": 0.5, "height": 0.25, "unit": "in"})
        millimeters = engine.normalize_part({"width": 254, "height": 127, "unit": "mm"})

        assert (inches.width, inches.height) == (0.5, 0.25)
        assert millimeters.width == pytest.approx(10)
        assert millimeters.height == pytest.approx(5)

    def test_default_unit_config(self):
        """Engine-wide default unit applies to untagged parts."""
        engine = NestingEngine(NestingConfig(default_unit=Unit.INCH))
        part = engine.normalize_part({"width": 0.5, "height": 0.25})

        assert (part.width, part.height) == (0.5, 0.25)

    def test_svg_path_sizing(self, engine):
        """Parts without a width are sized from their SVG path in points."""
        part = engine.normalize_part({"svg_path": "M 0 0 L 144 0 L 144 72 Z"})

        assert part.width == pytest.approx(2.0)
        assert part.height == pytest.approx(1.0)
        assert part.placeholder is False

    def test_svg_path_ignored_with_width(self, engine):
        """Explicit dimensions take precedence over the path."""
        part = engine.normalize_part({"width": 3, "height": 3, "svg_path": "M 0 0 L 144 0 L 144 72 Z"})

        assert (part.width, part.height) == (3, 3)

    def test_generated_ids_and_quantity(self, engine):
        """Parts without ids get positional ones."""
        parts = engine.normalize_parts([{"width": 1, "height": 1}, {"width": 2, "height": 2, "quantity": 3}])

        assert [p.id for p in parts] == ["part-1", "part-2"]
        assert parts[1].quantity == 3

    def test_non_list_input(self, engine):
        """Non-sequence inputs normalize to nothing."""
        assert engine.normalize_parts(None) == []
        assert engine.normalize_parts("parts") == []
        assert engine.normalize_parts(42) == []

    def test_generator_input(self, engine):
        """One-shot iterables are read, not dropped."""
        parts = engine.normalize_parts(p for p in [{"id": "g", "width": 3, "height": 1}])

        assert [p.id for p in parts] == ["g"]


class TestExpandQuantities:
    """Tests for quantity expansion."""

    def test_expands_copies(self):
        """Test that quantities become separate descriptors."""
        parts = expand_quantities([{"id": "tab", "width": 1, "height": 1, "quantity": 3}, {"id": "one"}])

        assert [p["id"] for p in parts] == ["tab-1", "tab-2", "tab-3", "one"]
        assert all(p["quantity"] == 1 for p in parts[:3])


class TestPlacementScenarios:
    """Worked placement examples."""

    def test_single_part(self, tight_engine):
        """One 10x10 part on a 20x20 sheet goes to the origin."""
        layout = tight_engine.place([{"id": "a", "width": 10, "height": 10}], {"width": 20, "height": 20})

        assert len(layout.placements) == 1
        placement = layout.placements[0]
        assert (placement.x, placement.y) == (0, 0)
        assert placement.rotation == 0
        assert layout.efficiency == pytest.approx(0.25)
        assert layout.utilization_percent == pytest.approx(25.0)
        assert layout.failed_parts == []
        assert layout.success is True

    def test_two_parts_stack(self):
        """Two 10x10 parts on a 15x25 sheet stack without overlap."""
        engine = NestingEngine(NestingConfig(margin=0))
        layout = engine.place(
            [{"id": "a", "width": 10, "height": 10}, {"id": "b", "width": 10, "height": 10}],
            {"width": 15, "height": 25},
        )

        assert len(layout.placements) == 2
        first, second = layout.placements
        assert (first.x, first.y) == (0, 0)
        assert second.x == 0
        assert second.y == pytest.approx(10.1)
        assert layout.efficiency == pytest.approx(200 / 375)

    def test_rotation_required(self):
        """A 30x5 part only fits a 10x35 sheet rotated."""
        layout = NestingEngine().place([{"id": "long", "width": 30, "height": 5}], {"width": 10, "height": 35})

        assert len(layout.placements) == 1
        placement = layout.placements[0]
        assert placement.rotation == 90
        assert (placement.width, placement.height) == (5, 30)
        assert (placement.x, placement.y) == pytest.approx((0.2, 0.2))

    def test_rotation_disabled(self):
        """Without rotation the same part fails."""
        engine = NestingEngine(NestingConfig(allow_rotation=False))
        layout = engine.place([{"id": "long", "width": 30, "height": 5}], {"width": 10, "height": 35})

        assert layout.placements == []
        assert [p.id for p in layout.failed_parts] == ["long"]

    def test_part_larger_than_sheet(self):
        """Oversized parts are reported, not raised."""
        layout = NestingEngine().place([{"id": "huge", "width": 50, "height": 50}], {"width": 20, "height": 20})

        assert layout.placements == []
        assert [p.id for p in layout.failed_parts] == ["huge"]
        assert layout.efficiency == 0
        assert layout.success is False

    def test_margin_offsets_placement(self):
        """Placements are reported in absolute sheet coordinates."""
        engine = NestingEngine(NestingConfig(spacing=0, margin=1))
        layout = engine.place([{"width": 5, "height": 5}], {"width": 20, "height": 20})

        assert (layout.placements[0].x, layout.placements[0].y) == (1, 1)

    def test_largest_part_first(self, tight_engine):
        """Parts are placed in descending area order."""
        layout = tight_engine.place(
            [{"id": "small", "width": 2, "height": 2}, {"id": "big", "width": 8, "height": 8}],
            {"width": 20, "height": 20},
        )

        assert [p.part.id for p in layout.placements] == ["big", "small"]
        assert (layout.placements[0].x, layout.placements[0].y) == (0, 0)

    def test_avoids_existing_cut(self, tight_engine):
        """New parts go beside previously cut areas."""
        layout = tight_engine.place(
            [{"id": "p", "width": 5, "height": 5}],
            {"width": 30, "height": 30},
            existing_cut_areas=[{"x": 0, "y": 0, "width": 10, "height": 10}],
        )

        placement = layout.placements[0]
        assert (placement.x, placement.y) == (10, 0)
        assert layout.remaining_area == pytest.approx(900 - 25 - 100)

    def test_existing_cut_blocks_sheet(self, tight_engine):
        """A fully cut sheet takes nothing."""
        layout = tight_engine.place(
            [{"id": "p", "width": 5, "height": 5}],
            {"width": 10, "height": 10},
            existing_cut_areas=[{"x": 0, "y": 0, "width": 10, "height": 10}],
        )

        assert layout.placements == []
        assert len(layout.failed_parts) == 1


class TestLayoutInvariants:
    """Properties every layout must satisfy."""

    @pytest.fixture
    def engine(self):
        return NestingEngine(NestingConfig(spacing=0.25, margin=0.5))

    @pytest.fixture
    def existing(self):
        return [
            {"x": 0, "y": 0, "width": 6, "height": 4, "part_name": "old-1"},
            {"x": 10, "y": 2, "width": 3, "height": 3, "part_name": "old-2"},
        ]

    @pytest.fixture
    def layout(self, engine, mixed_parts, existing):
        return engine.place(mixed_parts, {"width": 30, "height": 24}, existing)

    def test_no_overlap_between_placements(self, engine, layout):
        """Placed parts keep the spacing from each other."""
        placements = layout.placements
        assert len(placements) > 1
        for i, a in enumerate(placements):
            for b in placements[i + 1:]:
                assert _separated(a, b, engine.spacing), f"{a.part.id} overlaps {b.part.id}"

    def test_no_overlap_with_existing_cuts(self, engine, layout, existing):
        """Placed parts keep clear of previously cut regions."""
        margin = engine.margin
        for region in engine.process_existing_cut_areas(existing):
            absolute = OccupiedRegion(region.x + margin, region.y + margin, region.width, region.height)
            for placement in layout.placements:
                assert _separated(placement, absolute, engine.spacing)

    def test_within_sheet_bounds(self, engine, layout):
        """Placements stay inside the margins."""
        for placement in layout.placements:
            assert placement.x >= engine.margin
            assert placement.y >= engine.margin
            assert placement.x + placement.width <= 30 - engine.margin + 1e-9
            assert placement.y + placement.height <= 24 - engine.margin + 1e-9

    def test_area_conservation(self, layout):
        """Used area is the sum of placed footprints."""
        assert layout.total_area_used == pytest.approx(sum(p.width * p.height for p in layout.placements))
        assert layout.efficiency == pytest.approx(layout.total_area_used / (30 * 24))

    def test_every_part_accounted_for(self, layout, mixed_parts):
        """Each part is either placed or failed, exactly once."""
        ids = [p.part.id for p in layout.placements] + [p.id for p in layout.failed_parts]

        assert sorted(ids) == sorted(p["id"] for p in mixed_parts)

    def test_deterministic(self, engine, mixed_parts, existing):
        """Identical inputs give identical layouts."""
        first = engine.place(mixed_parts, {"width": 30, "height": 24}, existing)
        second = engine.place(mixed_parts, {"width": 30, "height": 24}, existing)

        assert first.to_dict() == second.to_dict()

    def test_rotation_legality(self, engine, layout):
        """Rotations come from the configured set."""
        assert all(p.rotation in engine.config.rotation_angles for p in layout.placements)

    def test_rotation_disabled_gives_zero(self, mixed_parts):
        """With rotation off every placement is unrotated."""
        engine = NestingEngine(NestingConfig(allow_rotation=False))
        layout = engine.place(mixed_parts, {"width": 30, "height": 24})

        assert layout.placements
        assert all(p.rotation == 0 for p in layout.placements)

    def test_shrinking_sheet_only_loses_parts(self):
        """A smaller sheet never places a part the larger one failed."""
        engine = NestingEngine(NestingConfig(margin=0))
        parts = [{"id": f"sq-{i}", "width": 10, "height": 10} for i in range(3)]

        large = engine.place(parts, {"width": 40, "height": 40})
        small = engine.place(parts, {"width": 20, "height": 20})

        assert len(large.failed_parts) == 0
        assert len(small.placements) == 1
        assert {p.id for p in large.failed_parts} <= {p.id for p in small.failed_parts}

    def test_new_cut_areas_match_placements(self, layout):
        """Each placement has a cut area covering its footprint."""
        assert len(layout.new_cut_areas) == len(layout.placements)
        for area, placement in zip(layout.new_cut_areas, layout.placements):
            xs = [x for x, _ in area.polygon]
            ys = [y for _, y in area.polygon]
            assert area.part_id == placement.part.id
            assert min(xs) == pytest.approx(placement.x)
            assert max(xs) == pytest.approx(placement.x + placement.width)
            assert min(ys) == pytest.approx(placement.y)
            assert max(ys) == pytest.approx(placement.y + placement.height)


class TestDegradedInput:
    """place() never raises."""

    @pytest.fixture
    def engine(self):
        return NestingEngine()

    def test_empty_parts(self, engine):
        """Test nesting with no parts."""
        layout = engine.place([], {"width": 10, "height": 10})

        assert layout.placements == []
        assert layout.failed_parts == []
        assert layout.remaining_area == 100

    def test_missing_sheet(self, engine):
        """A sheet without dimensions places nothing."""
        layout = engine.place([{"width": 1, "height": 1}], None)

        assert layout.placements == []
        assert len(layout.failed_parts) == 1
        assert layout.efficiency == 0

    def test_sheet_smaller_than_margins(self, engine):
        """Sheets consumed by their margins place nothing."""
        layout = engine.place([{"width": 0.01, "height": 0.01, "unit": "in"}], {"width": 0.3, "height": 0.3})

        assert layout.placements == []

    def test_garbage_existing_cuts(self, engine):
        """Malformed cut areas become empty regions."""
        layout = engine.place([{"width": 1, "height": 1}], {"width": 10, "height": 10}, ["bad", None, {"x": "?"}])

        assert len(layout.placements) == 1

    def test_unexpected_error_reported(self, engine, monkeypatch):
        """Internal failures come back as an error layout."""
        def boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(engine, "find_best_placement", boom)
        layout = engine.place([{"id": "p", "width": 1, "height": 1}], {"width": 10, "height": 10})

        assert layout.error_message == "boom"
        assert [p.id for p in layout.failed_parts] == ["p"]
        assert layout.success is False

    def test_text_unit_config_places_parts(self):
        """A unit given as text in the config does not break placement."""
        engine = NestingEngine(NestingConfig(default_unit="inch"))
        layout = engine.place([{"width": 0.5, "height": 0.5}], {"width": 10, "height": 10})

        assert layout.error_message is None
        assert layout.placements[0].part.width == 0.5

    def test_normalization_error_reported(self, engine, monkeypatch):
        """Failures while normalizing parts come back as an error layout."""
        def broken(*args, **kwargs):
            raise ValueError("unreadable part")

        monkeypatch.setattr(engine, "normalize_part", broken)
        layout = engine.place([{"width": 1, "height": 1}], {"width": 10, "height": 10})

        assert layout.error_message == "unreadable part"
        assert layout.placements == []
        assert layout.success is False


class TestCandidateSearch:
    """Tests for the placement search helpers."""

    @pytest.fixture
    def engine(self):
        return NestingEngine(NestingConfig(spacing=0.1, margin=0))

    @pytest.fixture
    def region(self):
        return OccupiedRegion(0, 0, 10, 10)

    def test_candidate_order(self, engine, region):
        """Origin first, then right, top and top-right of each region."""
        candidates = engine.generate_candidate_positions(1, 1, 100, 100, [region])

        assert candidates == [(0.0, 0.0), (10.1, 0), (0, 10.1), (10.1, 10.1)]

    def test_candidates_filtered_to_sheet(self, engine, region):
        """Candidates that would overhang the sheet are dropped."""
        candidates = engine.generate_candidate_positions(5, 5, 12, 100, [region])

        assert candidates == [(0.0, 0.0), (0, 10.1)]

    def test_overlap(self, engine, region):
        """Test overlapping rectangles."""
        assert engine.rectangles_overlap(OccupiedRegion(5, 5, 10, 10), region) is True

    def test_touching_within_spacing_is_clear(self, engine, region):
        """A gap of exactly the spacing is not an overlap."""
        assert engine.rectangles_overlap(OccupiedRegion(10.1, 0, 5, 5), region) is False

    def test_gap_below_spacing_overlaps(self, engine, region):
        """A gap smaller than the spacing counts as overlap."""
        assert engine.rectangles_overlap(OccupiedRegion(10.05, 0, 5, 5), region) is True

    def test_is_valid_placement(self, engine, region):
        """Test validity against occupied regions."""
        assert engine.is_valid_placement(OccupiedRegion(20, 20, 5, 5), [region]) is True
        assert engine.is_valid_placement(OccupiedRegion(2, 2, 5, 5), [region]) is False
        assert engine.is_valid_placement(OccupiedRegion(2, 2, 5, 5), []) is True

    def test_adjacency_score(self, engine, region):
        """Shared edges earn a bonus each."""
        beside = OccupiedRegion(10, 0, 5, 5)
        corner = OccupiedRegion(10, 10, 5, 5)

        assert engine.adjacency_score(beside, [region]) == 10
        assert engine.adjacency_score(corner, [region]) == 20
        assert engine.adjacency_score(OccupiedRegion(30, 30, 1, 1), [region]) == 0

    def test_space_to_right_and_above(self, engine):
        """Gaps to the nearest obstacles are measured."""
        rect = OccupiedRegion(0, 0, 5, 5)
        occupied = [OccupiedRegion(8, 0, 2, 2), OccupiedRegion(12, 0, 2, 2), OccupiedRegion(0, 9, 2, 2)]

        assert engine.space_to_right(rect, occupied) == 3
        assert engine.space_above(rect, occupied) == 4
        assert engine.wasted_space(rect, occupied) == 7
        assert engine.space_to_right(rect, []) == 0

    def test_placement_score(self, engine, region):
        """Score combines position, adjacency and waste."""
        assert engine.placement_score(OccupiedRegion(0, 0, 1, 1), []) == 0
        assert engine.placement_score(OccupiedRegion(2, 3, 1, 1), []) == -8
        assert engine.placement_score(OccupiedRegion(10, 0, 5, 5), [region]) == 0

    def test_rotated_dimensions(self, engine):
        """Quarter turns swap width and height."""
        part = Part(id="p", name="", width=6, height=2)

        assert engine.rotated_dimensions(part, 0) == (6, 2)
        assert engine.rotated_dimensions(part, 90) == (2, 6)
        assert engine.rotated_dimensions(part, 180) == (6, 2)
        assert engine.rotated_dimensions(part, 270) == (2, 6)

    def test_first_maximum_wins(self, engine):
        """Equal scores keep the first rotation tried."""
        part = Part(id="sq", name="", width=4, height=4)
        rect, rotation, score = engine.find_best_placement(part, 20, 20, ())

        assert rotation == 0
        assert (rect.x, rect.y) == (0, 0)
        assert score == 0

    def test_negative_best_score_still_placed(self, engine, region):
        """Candidates with negative scores are accepted when nothing beats them."""
        part = Part(id="p", name="", width=10, height=10)
        best = engine.find_best_placement(part, 12, 25, (region,))

        assert best is not None
        rect, rotation, score = best
        assert (rect.x, rect.y) == (0, 10.1)
        assert score < 0


class TestRegionsAndCutAreas:
    """Tests for occupied regions and generated cut areas."""

    def test_process_existing_cut_areas(self):
        """Descriptors become existing_cut regions with defaults."""
        regions = NestingEngine.process_existing_cut_areas([
            {"x": 1, "y": 2, "width": 3, "height": 4, "polygon": [{"x": 1, "y": 2}, [4, 2], [4, 6]]},
            {},
        ])

        assert regions[0].type == RegionType.EXISTING_CUT
        assert regions[0].polygon == ((1, 2), (4, 2), (4, 6))
        assert (regions[1].x, regions[1].width, regions[1].rotation) == (0, 0, 0)

    def test_process_existing_cut_areas_not_list(self):
        """Anything but a sequence gives no regions."""
        assert NestingEngine.process_existing_cut_areas(None) == []
        assert NestingEngine.process_existing_cut_areas({"x": 1}) == []

    def test_existing_cut_area(self):
        """Total area of previous cuts."""
        regions = [OccupiedRegion(0, 0, 2, 3), OccupiedRegion(5, 5, 1, 1)]

        assert NestingEngine.existing_cut_area(regions) == 7

    def test_rectangle_polygon_unrotated(self):
        """Corners start bottom-left and go counter-clockwise."""
        assert NestingEngine.rectangle_polygon(1, 2, 4, 3, 0) == [(1, 2), (5, 2), (5, 5), (1, 5)]

    def test_rectangle_polygon_quarter_turn(self):
        """A quarter turn swaps the extents about the centre."""
        polygon = NestingEngine.rectangle_polygon(0, 0, 10, 5, 90)

        assert polygon == [(7.5, -2.5), (7.5, 7.5), (2.5, 7.5), (2.5, -2.5)]

    def test_cut_area_for_rotated_part(self):
        """The polygon of a rotated placement is its footprint."""
        layout = NestingEngine().place([{"id": "long", "name": "Rail", "width": 30, "height": 5}], {"width": 10, "height": 35})
        area = layout.new_cut_areas[0]

        assert area.part_name == "Rail"
        assert area.rotation == 90
        xs = sorted({round(x, 6) for x, _ in area.polygon})
        ys = sorted({round(y, 6) for _, y in area.polygon})
        assert xs == [0.2, 5.2]
        assert ys == [0.2, 30.2]

    def test_cut_area_to_dict(self):
        """Cut areas serialize in region-descriptor shape."""
        layout = nest_parts([{"id": "a", "width": 2, "height": 2}], {"width": 10, "height": 10})
        d = layout.new_cut_areas[0].to_dict()

        assert d["part_id"] == "a"
        assert len(d["polygon"]) == 4
        assert set(d["polygon"][0]) == {"x", "y"}


class TestSheetModel:
    """Tests for Sheet descriptors."""

    def test_remaining_area_defaults_to_full(self):
        """Without tracking, the whole sheet is available."""
        sheet = Sheet.from_descriptor({"id": "s1", "width": 48, "height": 24})

        assert sheet.area == 1152
        assert sheet.remaining_area == 1152

    def test_remaining_area_kept(self):
        """Tracked remaining area is kept, including zero."""
        assert Sheet.from_descriptor({"width": 10, "height": 10, "remaining_area": 0}).remaining_area == 0

    def test_invalid_descriptor(self):
        """Test non-dict sheet descriptors."""
        sheet = Sheet.from_descriptor("plywood")

        assert (sheet.width, sheet.height) == (0, 0)


class TestExportLayout:
    """Tests for the text layout report."""

    def test_export_layout(self):
        """Test exporting layout."""
        engine = NestingEngine(NestingConfig(spacing=0, margin=0))
        layout = engine.place(
            [{"id": "a", "name": "part1", "width": 10, "height": 10}, {"id": "b", "name": "part3", "width": 50, "height": 1}],
            {"width": 20, "height": 20},
        )
        report = engine.export_layout(layout)

        assert "Sheet layout" in report
        assert "Sheet: 20x20in" in report
        assert "Utilization: 25.0%" in report
        assert "part1" in report
        assert "Unplaced parts (1)" in report
        assert "part3" in report

    def test_export_empty_layout(self):
        """A bare layout still renders."""
        report = NestingEngine().export_layout(Layout())

        assert "Sheet: unknown" in report
        assert "Parts placed: 0" in report


class TestConvenienceFunctions:
    """Tests for convenience functions."""

    def test_create_engine(self):
        """Test create_engine function."""
        engine = create_engine(spacing=0.5, margin=1.0, allow_rotation=False)

        assert engine.config.spacing == 0.5
        assert engine.config.margin == 1.0
        assert engine.rotation_options() == (0,)

    def test_nest_parts_function(self):
        """Test nest_parts convenience function."""
        layout = nest_parts(
            [{"width": 4, "height": 4}, {"width": 3, "height": 3}],
            {"width": 12, "height": 12},
            spacing=0,
            margin=0,
        )

        assert len(layout.placements) == 2
        assert layout.to_dict()["success"] is True
