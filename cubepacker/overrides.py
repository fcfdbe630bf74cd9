"""
User overrides applied to the incoming games before packing.

Overrides are keyed by "<game>-<version>", the same form as a game's id:
- excludedVersions drop the game from the run entirely
- stackingOverrides force an orientation
- dimensionOverrides replace the box dimensions (all three must be positive)
"""
from dataclasses import dataclass, field
from math import isfinite
from typing import Dict, List, Optional, Set, Tuple

from cubepacker import schemas
from cubepacker.config import DEFAULT_DIMENSIONS
from cubepacker.logger import logger


@dataclass
class OverrideMaps:
    excluded_ids: Set[str] = field(default_factory=set)
    orientation_map: Dict[str, str] = field(default_factory=dict)
    dimension_map: Dict[str, Tuple[float, float, float]] = field(default_factory=dict)


def _positive(value: Optional[float]) -> bool:
    return value is not None and isfinite(value) and value > 0


def build_override_maps(overrides: Optional[schemas.PackingOverrides]) -> OverrideMaps:
    maps = OverrideMaps()
    if overrides is None:
        return maps

    for ref in overrides.excluded_versions:
        if ref.key:
            maps.excluded_ids.add(ref.key)

    for stacking in overrides.stacking_overrides:
        if stacking.key and stacking.orientation in ("horizontal", "vertical"):
            maps.orientation_map[stacking.key] = stacking.orientation

    for dims in overrides.dimension_overrides:
        if dims.key and all(_positive(v) for v in (dims.length, dims.width, dims.depth)):
            maps.dimension_map[dims.key] = (dims.length, dims.width, dims.depth)

    if maps.excluded_ids:
        logger.info(f"Excluding {len(maps.excluded_ids)} game(s) from packing due to user override")
    if maps.orientation_map:
        logger.info(f"Applying forced orientation to {len(maps.orientation_map)} game(s)")
    if maps.dimension_map:
        logger.info(f"Applying manual dimensions to {len(maps.dimension_map)} game(s)")
    return maps


def apply_overrides(games: List[schemas.PackingGame], maps: OverrideMaps) -> List[schemas.PackingGame]:
    prepared = []
    for game in games:
        if game.id in maps.excluded_ids:
            continue
        update = {}
        override_dims = maps.dimension_map.get(game.id)
        if override_dims:
            length, width, depth = override_dims
            missing = game.dimensions.missing_dimensions if game.dimensions else False
            update["dimensions"] = schemas.GameDimensions(
                length=length, width=width, depth=depth, missing_dimensions=missing
            )
        orientation = maps.orientation_map.get(game.id)
        if orientation:
            update["forced_orientation"] = orientation
        prepared.append(game.model_copy(update=update) if update else game)

    removed = len(games) - len(prepared)
    if removed:
        logger.info(f"{removed} game(s) removed via manual exclusions")
    return prepared


def needs_default_dimensions(dimensions: Optional[schemas.GameDimensions]) -> bool:
    """Missing or all-zero dimensions; partially bad data is left alone."""
    if dimensions is None or dimensions.missing_dimensions:
        return True
    return not any((dimensions.length, dimensions.width, dimensions.depth))


def apply_default_dimensions(games: List[schemas.PackingGame]) -> List[schemas.PackingGame]:
    length, width, depth = DEFAULT_DIMENSIONS
    result = []
    defaulted = 0
    for game in games:
        if needs_default_dimensions(game.dimensions):
            defaulted += 1
            game = game.model_copy(
                update={
                    "dimensions": schemas.GameDimensions(
                        length=length, width=width, depth=depth, missing_dimensions=True
                    )
                }
            )
        result.append(game)
    if defaulted:
        logger.warning(f"{defaulted} game(s) have no dimensions, using {length}x{width}x{depth} default")
    return result
