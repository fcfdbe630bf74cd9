"""Tests for item, footprint and cube entities."""
import math

import pytest

from cubepacker.model.entities import (
    HORIZONTAL,
    VERTICAL,
    Cube,
    Dimensions,
    Footprint,
    Item,
    PackingOptions,
    build_orientations,
    calculate_both_orientations,
)


class TestFootprintResolution:
    """Largest side is the depth, the other two form the footprint."""

    def test_depth_is_largest_side(self):
        footprints, depth = calculate_both_orientations(Dimensions(11.0, 3.0, 8.0))
        assert depth == 11.0
        assert footprints.horizontal == Footprint(8.0, 3.0)
        assert footprints.vertical == Footprint(3.0, 8.0)

    def test_order_of_input_does_not_matter(self):
        a, depth_a = calculate_both_orientations(Dimensions(2.0, 12.0, 9.0))
        b, depth_b = calculate_both_orientations(Dimensions(9.0, 2.0, 12.0))
        assert a == b
        assert depth_a == depth_b == 12.0

    def test_primary_orientation_selects_footprint(self):
        item = Item(id="1-1", dimensions=Dimensions(10.0, 4.0, 12.0))
        assert item.resolve_footprints(VERTICAL, 12.8)
        assert item.primary_footprint == Footprint(4.0, 10.0)
        assert item.area == pytest.approx(40.0)
        assert item.depth == 12.0

    def test_forced_orientation_wins_over_primary(self):
        item = Item(id="1-1", dimensions=Dimensions(10.0, 4.0, 12.0), forced_orientation="horizontal")
        item.resolve_footprints(VERTICAL, 12.8)
        assert item.primary_orientation == HORIZONTAL
        assert item.primary_footprint == Footprint(10.0, 4.0)

    def test_unknown_forced_orientation_is_ignored(self):
        item = Item(id="1-1", forced_orientation="diagonal")
        assert item.forced_orientation is None

    @pytest.mark.parametrize(
        "dims",
        [
            Dimensions(0.0, 5.0, 5.0),
            Dimensions(-1.0, 5.0, 5.0),
            Dimensions(None, 5.0, 5.0),
            Dimensions(math.nan, 5.0, 5.0),
            Dimensions(math.inf, 5.0, 5.0),
        ],
    )
    def test_invalid_dimensions_are_unpackable(self, dims):
        item = Item(id="1-1", dimensions=dims)
        assert not item.resolve_footprints(VERTICAL, 12.8)
        assert item.unpackable_reason == "invalid dimensions"
        assert item.area == 0.0

    def test_missing_dimensions_are_unpackable(self):
        item = Item(id="1-1")
        assert not item.resolve_footprints(VERTICAL, 12.8)

    def test_oversized_flag_uses_strict_threshold(self):
        fits = Item(id="a", dimensions=Dimensions(12.8, 5.0, 13.0))
        fits.resolve_footprints(HORIZONTAL, 12.8)
        assert not fits.exceeds_max_dimension

        too_big = Item(id="b", dimensions=Dimensions(13.0, 13.0, 14.0))
        too_big.resolve_footprints(HORIZONTAL, 12.8)
        assert too_big.exceeds_max_dimension


class TestBuildOrientations:
    """Orientations offered to the placement core."""

    def test_primary_then_rotated(self, make_item):
        item = make_item("a", 4, 10)
        options = build_orientations(item, VERTICAL, lock_rotation=False)
        assert [(o.x, o.y, o.label) for o in options] == [
            (4, 10, VERTICAL),
            (10, 4, HORIZONTAL),
        ]

    def test_lock_rotation_offers_one(self, make_item):
        item = make_item("a", 4, 10)
        assert len(build_orientations(item, VERTICAL, lock_rotation=True)) == 1

    def test_square_item_offers_one(self, make_item):
        item = make_item("a", 6, 6)
        assert len(build_orientations(item, VERTICAL, lock_rotation=False)) == 1

    def test_forced_orientation_offers_only_that(self, make_item):
        item = make_item("a", 10, 4, forced_orientation="horizontal")
        options = build_orientations(item, VERTICAL, lock_rotation=False)
        assert len(options) == 1
        assert options[0].label == HORIZONTAL


class TestCubeBookkeeping:
    """Occupied area cache, snapshot and restore."""

    def test_add_and_remove_keep_area_in_sync(self, cube, make_item, place_at):
        a = place_at(cube, make_item("a", 6, 6), 0, 0)
        b = place_at(cube, make_item("b", 4, 5), 6, 0)
        assert cube.occupied_area == pytest.approx(56.0)
        assert cube.remove(a) == 0
        assert cube.occupied_area == pytest.approx(20.0)
        assert cube.items == [b]

    def test_remove_unknown_item_raises(self, cube, make_item, place_at):
        other = Cube()
        stray = place_at(other, make_item("x", 1, 1), 0, 0)
        with pytest.raises(ValueError):
            cube.remove(stray)

    def test_restore_brings_back_positions_and_order(self, cube, make_item, place_at):
        a = place_at(cube, make_item("a", 6, 6), 0, 0)
        b = place_at(cube, make_item("b", 4, 5), 6, 0)
        snapshot = cube.snapshot()

        cube.clear()
        b.x, b.y = 0.0, 0.0
        a.x, a.y = 4.0, 0.0
        cube.items = [b, a]

        cube.restore(snapshot)
        assert cube.items == [a, b]
        assert (a.x, a.y) == (0, 0)
        assert (b.x, b.y) == (6, 0)
        assert cube.occupied_area == pytest.approx(56.0)

    def test_fits_area(self, cube, make_item, place_at):
        place_at(cube, make_item("a", 12.8, 12.0), 0, 0)
        assert cube.fits_area(12.8 * 0.8)
        assert not cube.fits_area(12.8 * 0.8 + 0.01)

    def test_clone_is_independent(self, cube, make_item, place_at):
        a = place_at(cube, make_item("a", 6, 6), 0, 0)
        copy = cube.clone()
        copy.items[0].x = 5.0
        assert a.x == 0
        assert copy.items[0].item is a.item


class TestPackingOptions:
    def test_defaults(self):
        options = PackingOptions()
        assert options.primary_orientation == VERTICAL
        assert not options.optimize_space

    def test_unknown_orientation_falls_back_to_vertical(self):
        assert PackingOptions(primary_orientation="sideways").primary_orientation == VERTICAL
