"""
Cube bookkeeping around the placement core.

Covers which existing cubes are offered to an item before a new one is
opened, and the finalize step that numbers cubes and derives rows and stats.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence

from .entities import Cube, CubeRow, CubeStats, Item, PackingOptions, PlacedItem
from .geometry import round_to_grid


@dataclass
class StuffedItem:
    item: Item
    cube_id: int


@dataclass
class CollectionSummary:
    total_items: int
    total_cubes: int
    avg_items_per_cube: float
    total_utilization: float
    missing_dimension_count: int = 0
    exceeding_capacity_count: int = 0


def get_candidate_cubes(cubes: Sequence[Cube], options: PackingOptions) -> List[Cube]:
    """
    Existing cubes to try, in order, before a new one is opened.

    optimize_space: every cube, fullest first.
    respect_sort_order: only the newest cube, so the user order is never backfilled.
    default: the two newest cubes, older first.
    """
    if not cubes:
        return []
    if options.optimize_space:
        return sorted(cubes, key=lambda c: -c.occupied_area)
    if options.respect_sort_order:
        return [cubes[-1]]
    return list(cubes[-2:])


def build_rows(items: Sequence[PlacedItem]) -> List[CubeRow]:
    by_y: Dict[float, List[PlacedItem]] = {}
    for placed in items:
        by_y.setdefault(round_to_grid(placed.y), []).append(placed)

    rows = []
    for y in sorted(by_y):
        row_items = sorted(by_y[y], key=lambda p: p.x)
        rows.append(
            CubeRow(
                y=y,
                items=row_items,
                width_used=round_to_grid(sum(p.width for p in row_items)),
                height_used=max(p.height for p in row_items),
            )
        )
    return rows


def compute_stats(cube: Cube) -> CubeStats:
    area_used = cube.occupied_area
    utilization = area_used / cube.capacity * 100 if cube.capacity else 0.0
    utilization = min(max(utilization, 0.0), 100.0)
    return CubeStats(
        item_count=len(cube.items),
        area_used=round(area_used, 2),
        utilization_percent=round(utilization, 1),
    )


def finalize_cubes(cubes: List[Cube]) -> List[Cube]:
    """Number cubes from 1 and attach rows and stats. Empty cubes are dropped."""
    finalized = [cube for cube in cubes if cube.items]
    for idx, cube in enumerate(finalized):
        cube.id = idx + 1
        cube.rows = build_rows(cube.items)
        cube.stats = compute_stats(cube)
    return finalized


def get_oversized_stuffed_items(cubes: Sequence[Cube]) -> List[StuffedItem]:
    stuffed = []
    for cube in cubes:
        for placed in cube.items:
            if placed.oversized_x or placed.oversized_y:
                stuffed.append(StuffedItem(item=placed.item, cube_id=cube.id))
    return stuffed


def summarize(cubes: Sequence[Cube]) -> CollectionSummary:
    """Totals over packed items only; excluded and unpackable items are not counted."""
    total_cubes = len(cubes)
    placed = [p for cube in cubes for p in cube.items]
    packed = len(placed)
    capacity = sum(cube.capacity for cube in cubes)
    used = sum(cube.occupied_area for cube in cubes)
    return CollectionSummary(
        total_items=packed,
        total_cubes=total_cubes,
        avg_items_per_cube=round(packed / total_cubes, 1) if total_cubes else 0.0,
        total_utilization=round(used / capacity * 100, 1) if capacity else 0.0,
        missing_dimension_count=sum(
            1 for p in placed if p.item.dimensions is not None and p.item.dimensions.missing
        ),
        exceeding_capacity_count=sum(1 for p in placed if p.oversized_x or p.oversized_y),
    )
