from __future__ import annotations

from typing import List, Optional, Sequence

from cubepacker.logger import logger
from cubepacker.config import GRID_PRECISION
from .entities import Cube, PlacedItem
from .geometry import all_supported, find_row_position, find_supporting_items, fits_at


def _place_on_row(
    placed: PlacedItem,
    target_y: float,
    preferred_xs: Sequence[float],
    others: Sequence[PlacedItem],
    size: float,
) -> Optional[float]:
    for x in preferred_xs:
        if fits_at(x, target_y, placed.width, placed.height, others, size):
            return x
    return find_row_position(placed.width, placed.height, target_y, others, size)


def try_swap_for_stability(cube: Cube, first: PlacedItem, second: PlacedItem) -> bool:
    """
    Put the wider of two stacked items underneath the narrower one.

    Both items are lifted out, the wider is set on the lower of the two rows
    and the narrower on the upper one. Any failure restores the cube exactly.
    """
    if abs(first.width - second.width) < GRID_PRECISION:
        return False

    lower, upper = (first, second) if first.width > second.width else (second, first)
    snapshot = cube.snapshot()
    lower_x, lower_y = lower.x, lower.y
    upper_x, upper_y = upper.x, upper.y
    lower_target_y = min(lower_y, upper_y)
    upper_target_y = max(lower_y, upper_y)

    cube.remove(first)
    cube.remove(second)
    others: List[PlacedItem] = list(cube.items)

    new_lower_x = _place_on_row(lower, lower_target_y, (lower_x, upper_x), others, cube.size)
    if new_lower_x is None:
        cube.restore(snapshot)
        return False
    lower.x, lower.y = new_lower_x, lower_target_y

    with_lower = [lower] + others
    new_upper_x = _place_on_row(upper, upper_target_y, (upper_x, lower_x), with_lower, cube.size)
    if new_upper_x is None:
        cube.restore(snapshot)
        return False
    upper.x, upper.y = new_upper_x, upper_target_y

    # Items that rested on either of the pair must still be carried
    if not all_supported(others + [lower, upper]):
        cube.restore(snapshot)
        return False

    cube.add(lower)
    cube.add(upper)
    logger.debug(
        f"Stability swap: {lower.item.id} -> ({lower.x}, {lower.y}), "
        f"{upper.item.id} -> ({upper.x}, {upper.y})"
    )
    return True


def check_and_improve_stability(cube: Cube, placed: PlacedItem) -> int:
    """
    Push a freshly placed item below any narrower item holding it up.

    Repeats from the item's new spot after each successful swap; the item
    only ever moves down, so the loop ends. Returns the number of swaps.
    """
    swaps = 0
    while placed.y >= GRID_PRECISION:
        others = [p for p in cube.items if p is not placed]
        supporters = find_supporting_items(placed.x, placed.y, placed.width, others)
        swapped = False
        for supporter in supporters:
            if placed.width > supporter.width + GRID_PRECISION:
                if try_swap_for_stability(cube, placed, supporter):
                    swapped = True
                    swaps += 1
                    break
        if not swapped:
            break
    return swaps
