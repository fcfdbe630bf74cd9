from __future__ import annotations

from math import floor
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np
import numba

from cubepacker.config import GRID_PRECISION
from .entities import EPS, PlacedItem

if TYPE_CHECKING:
    from .entities import Cube


def round_to_grid(value: float) -> float:
    return round(round(value / GRID_PRECISION) * GRID_PRECISION, 6)


def grid_steps(span: float) -> int:
    """Number of whole grid steps that fit in span, with half-step tolerance."""
    if span < -EPS:
        return -1
    return int(floor(span / GRID_PRECISION + 0.5 + 1e-9))


def placed_items_array(items: Sequence[PlacedItem]) -> np.ndarray:
    """Pack placed rectangles as rows of (x, y, width, height)."""
    data = np.zeros((len(items), 4), dtype=np.float64)
    for i, p in enumerate(items):
        data[i, 0] = p.x
        data[i, 1] = p.y
        data[i, 2] = p.width
        data[i, 3] = p.height
    return data


@numba.njit(cache=True)
def check_collision_numba(
    x: float,
    y: float,
    width: float,
    height: float,
    placed: np.ndarray,
    epsilon: float,
) -> bool:
    """Separating-axis overlap test against every placed rectangle."""
    for i in range(placed.shape[0]):
        gx, gy, gw, gh = placed[i, 0], placed[i, 1], placed[i, 2], placed[i, 3]
        if not (
            x >= gx + gw - epsilon
            or x + width <= gx + epsilon
            or y >= gy + gh - epsilon
            or y + height <= gy + epsilon
        ):
            return True
    return False


@numba.njit(cache=True)
def check_full_support_numba(
    x: float,
    y: float,
    width: float,
    placed: np.ndarray,
    step: float,
    epsilon: float,
) -> bool:
    """Every grid sample under [x, x + width) must sit on a top edge at y."""
    if y < step:
        return True
    k = 0
    while True:
        test_x = x + k * step
        if test_x >= x + width - epsilon:
            break
        supported = False
        for i in range(placed.shape[0]):
            gx, gy, gw, gh = placed[i, 0], placed[i, 1], placed[i, 2], placed[i, 3]
            if (
                test_x >= gx - epsilon
                and test_x < gx + gw - epsilon
                and abs(y - (gy + gh)) < epsilon
            ):
                supported = True
                break
        if not supported:
            return False
        k += 1
    return True


@numba.njit(cache=True)
def scan_row_numba(
    placed: np.ndarray,
    width: float,
    height: float,
    y: float,
    max_x_steps: int,
    step: float,
    epsilon: float,
) -> int:
    """First x step at height y that is free and supported, or -1."""
    for ix in range(max_x_steps + 1):
        x = ix * step
        if check_collision_numba(x, y, width, height, placed, epsilon):
            continue
        if y >= step and not check_full_support_numba(x, y, width, placed, step, epsilon):
            continue
        return ix
    return -1


@numba.njit(cache=True)
def scan_positions_numba(
    placed: np.ndarray,
    width: float,
    height: float,
    max_x_steps: int,
    max_y_steps: int,
    step: float,
    epsilon: float,
) -> Tuple[int, int]:
    """Bottom-left fill: lowest row first, leftmost within the row."""
    for iy in range(max_y_steps + 1):
        y = iy * step
        ix = scan_row_numba(placed, width, height, y, max_x_steps, step, epsilon)
        if ix >= 0:
            return ix, iy
    return -1, -1


def has_collision(x: float, y: float, width: float, height: float, items: Sequence[PlacedItem]) -> bool:
    if not items:
        return False
    return bool(check_collision_numba(x, y, width, height, placed_items_array(items), EPS))


def has_full_support(x: float, y: float, width: float, items: Sequence[PlacedItem]) -> bool:
    if y < GRID_PRECISION:
        return True
    return bool(
        check_full_support_numba(x, y, width, placed_items_array(items), GRID_PRECISION, EPS)
    )


def fits_at(
    x: float,
    y: float,
    width: float,
    height: float,
    items: Sequence[PlacedItem],
    size: float,
) -> bool:
    """Bounds, collision and support check for one candidate spot."""
    if x < -EPS or y < -EPS:
        return False
    if x + width > size + EPS or y + height > size + EPS:
        return False
    if has_collision(x, y, width, height, items):
        return False
    return has_full_support(x, y, width, items)


def find_position(cube: "Cube", width: float, height: float) -> Optional[Tuple[float, float]]:
    """
    Scan the cube for the lowest, then leftmost, free and supported spot.

    Returns (x, y) snapped to the grid, or None when nothing fits.
    """
    max_x_steps = grid_steps(cube.size - width)
    max_y_steps = grid_steps(cube.size - height)
    if max_x_steps < 0 or max_y_steps < 0:
        return None

    ix, iy = scan_positions_numba(
        placed_items_array(cube.items),
        width,
        height,
        max_x_steps,
        max_y_steps,
        GRID_PRECISION,
        EPS,
    )
    if ix < 0:
        return None
    return round_to_grid(ix * GRID_PRECISION), round_to_grid(iy * GRID_PRECISION)


def find_row_position(
    width: float,
    height: float,
    y: float,
    items: Sequence[PlacedItem],
    size: float,
) -> Optional[float]:
    """Leftmost free and supported x at a fixed height, or None."""
    max_x_steps = grid_steps(size - width)
    if max_x_steps < 0 or y + height > size + EPS:
        return None
    ix = scan_row_numba(
        placed_items_array(items),
        width,
        height,
        y,
        max_x_steps,
        GRID_PRECISION,
        EPS,
    )
    if ix < 0:
        return None
    return round_to_grid(ix * GRID_PRECISION)


def find_supporting_items(x: float, y: float, width: float, items: Sequence[PlacedItem]) -> List[PlacedItem]:
    """Items whose top edge sits at y and overlaps [x, x + width) horizontally."""
    if y < GRID_PRECISION:
        return []
    supporters = []
    for p in items:
        if abs(y - p.top) < EPS:
            if not (x >= p.right - EPS or x + width <= p.x + EPS):
                supporters.append(p)
    return supporters


def rectangles_overlap(a: PlacedItem, b: PlacedItem) -> bool:
    return not (
        a.x >= b.right - EPS
        or a.right <= b.x + EPS
        or a.y >= b.top - EPS
        or a.top <= b.y + EPS
    )


def is_supported(placed: PlacedItem, items: Sequence[PlacedItem]) -> bool:
    others = [p for p in items if p is not placed]
    return has_full_support(placed.x, placed.y, placed.width, others)


def all_supported(items: Sequence[PlacedItem]) -> bool:
    return all(is_supported(p, items) for p in items if p.y >= GRID_PRECISION)
