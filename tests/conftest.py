"""
Shared test fixtures for the cube packing tests.
"""
import pytest

from cubepacker.config import OVERSIZED_THRESHOLD
from cubepacker.model.entities import (
    HORIZONTAL,
    VERTICAL,
    Cube,
    Dimensions,
    Item,
    PlacedItem,
)


def build_item(item_id, width, height, depth=None, **kwargs):
    """Resolved item whose primary footprint is exactly width x height."""
    depth = depth if depth is not None else max(width, height) + 1.0
    item = Item(
        id=item_id,
        name=kwargs.pop("name", item_id),
        dimensions=Dimensions(width, height, depth),
        **kwargs,
    )
    orientation = HORIZONTAL if width >= height else VERTICAL
    item.resolve_footprints(orientation, OVERSIZED_THRESHOLD)
    return item


def place(cube, item, x, y, width=None, height=None):
    fp = item.primary_footprint
    width = fp.x if width is None else width
    height = fp.y if height is None else height
    placed = PlacedItem(
        item=item,
        x=x,
        y=y,
        width=width,
        height=height,
        actual_width=width,
        actual_height=height,
        depth=item.depth,
        orientation=HORIZONTAL if width >= height else VERTICAL,
    )
    cube.add(placed)
    return placed


@pytest.fixture
def make_item():
    """Factory: make_item("a", 6, 6, is_expansion=True, ...)."""
    return build_item


@pytest.fixture
def place_at():
    """Factory: place_at(cube, item, x, y) puts an item without any search."""
    return place


@pytest.fixture
def cube():
    """An empty 12.8 x 12.8 cube."""
    return Cube(size=12.8)


def game(game_id, length, width, depth, **extra):
    """Request-shaped game dict with camelCase keys."""
    data = {
        "id": game_id,
        "name": extra.pop("name", game_id),
        "dimensions": {"length": length, "width": width, "depth": depth},
    }
    data.update(extra)
    return data


@pytest.fixture
def make_game():
    return game
