from __future__ import annotations

from functools import cmp_to_key
from typing import List, Optional, Sequence, Set

from cubepacker.logger import logger
from cubepacker.config import PACKER_DEBUG_FLOW
from .entities import HORIZONTAL, VERTICAL, Cube, Item, PlacedItem, build_orientations
from .geometry import find_position
from .sorting import SortRule, compare_items, sort_items_by_area
from .stability import check_and_improve_stability


def _make_placed(cube: Cube, item: Item, width: float, height: float, orientation: Optional[str]) -> PlacedItem:
    packed_w = min(width, cube.size)
    packed_h = min(height, cube.size)
    return PlacedItem(
        item=item,
        x=0.0,
        y=0.0,
        width=packed_w,
        height=packed_h,
        actual_width=width,
        actual_height=height,
        depth=item.depth,
        orientation=orientation or (HORIZONTAL if width >= height else VERTICAL),
        oversized_x=width > cube.size,
        oversized_y=height > cube.size,
    )


def try_place_item(
    cube: Cube,
    item: Item,
    width: float,
    height: float,
    orientation: Optional[str] = None,
) -> bool:
    """Place one item at the first free supported spot, then repair stability."""
    placed = _make_placed(cube, item, width, height, orientation)
    if not cube.fits_area(placed.area):
        return False

    position = find_position(cube, placed.width, placed.height)
    if position is None:
        return False

    placed.x, placed.y = position
    cube.add(placed)
    if PACKER_DEBUG_FLOW:
        logger.debug(f"Placed {item.id} at {position} as {placed.orientation}")
    if placed.y > 0:
        check_and_improve_stability(cube, placed)
    return True


def _reorganization_order(
    working: List[PlacedItem],
    sort_rules: Sequence[SortRule],
    optimize_space: bool,
) -> List[PlacedItem]:
    if optimize_space:
        return sorted(working, key=lambda p: -p.area)
    return sorted(
        working,
        key=cmp_to_key(lambda a, b: compare_items(a.item, b.item, sort_rules)),
    )


def try_aggressive_reorganization(
    cube: Cube,
    item: Item,
    width: float,
    height: float,
    sort_rules: Sequence[SortRule],
    optimize_space: bool,
    orientation: Optional[str] = None,
) -> bool:
    """
    Re-lay the whole cube from scratch with the new item included.

    Placed items keep their packed footprint. If any item fails to find a spot
    the cube is restored to exactly the state it had before the call.
    """
    new_placed = _make_placed(cube, item, width, height, orientation)
    if not cube.fits_area(new_placed.area):
        return False

    snapshot = cube.snapshot()
    working = _reorganization_order(list(cube.items) + [new_placed], sort_rules, optimize_space)

    cube.clear()
    for placed in working:
        position = find_position(cube, placed.width, placed.height)
        if position is None:
            cube.restore(snapshot)
            return False
        placed.x, placed.y = position
        cube.items.append(placed)

    cube.recompute_occupied_area()
    logger.debug(f"Reorganized cube to fit {item.id} ({len(cube.items)} items)")
    return True


def place_item_in_cube(
    cube: Cube,
    item: Item,
    primary_orientation: str,
    lock_rotation: bool,
    sort_rules: Sequence[SortRule],
    optimize_space: bool,
) -> bool:
    """Direct placement in every orientation, then reorganization in every orientation."""
    options = build_orientations(item, primary_orientation, lock_rotation)
    for option in options:
        if try_place_item(cube, item, option.x, option.y, option.label):
            return True
    for option in options:
        if try_aggressive_reorganization(
            cube, item, option.x, option.y, sort_rules, optimize_space, option.label
        ):
            return True
    return False


def try_place_group(
    cube: Cube,
    group: Sequence[Item],
    primary_orientation: str,
    lock_rotation: bool,
    placed_ids: Set[str],
) -> bool:
    """
    Place every not-yet-placed member of a group into the cube, or none.

    Members go largest first into a working copy; the cube takes over the
    copy's layout only when every member found a spot.
    """
    pending = [item for item in group if item.id not in placed_ids]
    if not pending:
        return True
    working = cube.clone()
    for item in sort_items_by_area(pending):
        options = build_orientations(item, primary_orientation, lock_rotation)
        if not any(try_place_item(working, item, o.x, o.y, o.label) for o in options):
            return False

    cube.adopt(working)
    placed_ids.update(item.id for item in pending)
    return True
