from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import cmp_to_key
from typing import List, Optional, Sequence, Set

from cubepacker.config import CUBE_SIZE, MAX_GROUP_AREA_RATIO, OVERSIZED_THRESHOLD
from .entities import *
from .packers import *

from .. import schemas
from ..overrides import apply_default_dimensions, apply_overrides, build_override_maps
from cubepacker.logger import logger


class Stage(str, Enum):
    PREPARE = "prepare"
    GROUP = "group"
    SORT = "sort"
    PLACE_GROUPS = "place_groups"
    PLACE_STANDALONE = "place_standalone"
    PLACE_LEFTOVER_GROUP_ITEMS = "place_leftover_group_items"
    FINALIZE = "finalize"
    DONE = "done"


@dataclass
class PackingOutcome:
    cubes: List[Cube] = field(default_factory=list)
    excluded_oversized: List[Item] = field(default_factory=list)
    unpackable: List[Item] = field(default_factory=list)
    stuffed: List[StuffedItem] = field(default_factory=list)


class CubePackingSolver:
    """Runs one packing pass over a collection, stage by stage."""

    def __init__(
        self,
        items: List[Item],
        options: Optional[PackingOptions] = None,
        sort_rules: Optional[Sequence[SortRule]] = None,
        cube_size: float = CUBE_SIZE,
        oversized_threshold: float = OVERSIZED_THRESHOLD,
    ) -> None:
        self.items = items
        self.options = options or PackingOptions()
        self.sort_rules = list(sort_rules or [])
        self.cube_size = cube_size
        self.oversized_threshold = oversized_threshold
        self.stage = Stage.PREPARE

        self.cubes: List[Cube] = []
        self.valid: List[Item] = []
        self.excluded_oversized: List[Item] = []
        self.unpackable: List[Item] = []
        self.groups: List[ItemGroup] = []
        self.standalone: List[Item] = []
        self.leftovers: List[Item] = []
        self.placed_ids: Set[str] = set()

    def _enter(self, stage: Stage) -> None:
        self.stage = stage
        logger.info(f"Packing stage -> {stage.value}")

    def solve(self) -> PackingOutcome:
        self._enter(Stage.PREPARE)
        self._prepare()

        self._enter(Stage.GROUP)
        if self.options.group_expansions or self.options.group_series:
            self.groups, self.standalone = build_item_groups(
                self.valid,
                self.options.group_expansions,
                self.options.group_series,
                max_area=self.cube_size * self.cube_size * MAX_GROUP_AREA_RATIO,
            )
        else:
            self.standalone = list(self.valid)

        self._enter(Stage.SORT)
        self.groups = self._sort_groups(self.groups)
        self.standalone = sort_items_for_placement(
            self.standalone, self.sort_rules, self.options.optimize_space
        )

        self._enter(Stage.PLACE_GROUPS)
        for group in self.groups:
            self._place_group(group)

        self._enter(Stage.PLACE_STANDALONE)
        for item in self.standalone:
            self._place_single(item)

        self._enter(Stage.PLACE_LEFTOVER_GROUP_ITEMS)
        leftovers = sort_items_for_placement(
            self.leftovers, self.sort_rules, self.options.optimize_space
        )
        for item in leftovers:
            self._place_single(item)

        self._enter(Stage.FINALIZE)
        self.cubes = finalize_cubes(self.cubes)
        stuffed = get_oversized_stuffed_items(self.cubes)

        self._enter(Stage.DONE)
        return PackingOutcome(
            cubes=self.cubes,
            excluded_oversized=self.excluded_oversized,
            unpackable=self.unpackable,
            stuffed=stuffed,
        )

    def _prepare(self) -> None:
        seen: Set[str] = set()
        for item in self.items:
            if item.id in seen:
                item.unpackable_reason = "duplicate id"
                logger.error(f"Item {item.id} ({item.name}) is a duplicate of an earlier item")
                self.unpackable.append(item)
                continue
            seen.add(item.id)
            if not item.resolve_footprints(self.options.primary_orientation, self.oversized_threshold):
                logger.error(f"Item {item.id} ({item.name}) is unpackable: {item.unpackable_reason}")
                self.unpackable.append(item)
                continue
            if item.exceeds_max_dimension and not self.options.fit_oversized:
                fp = item.primary_footprint
                logger.info(f"Excluding oversized item {item.id} ({fp.x} x {fp.y})")
                self.excluded_oversized.append(item)
                continue
            self.valid.append(item)
        logger.info(
            f"Prepared {len(self.valid)} items, {len(self.excluded_oversized)} oversized, "
            f"{len(self.unpackable)} unpackable"
        )

    def _sort_groups(self, groups: List[ItemGroup]) -> List[ItemGroup]:
        rules = self.sort_rules

        def by_rules(a: ItemGroup, b: ItemGroup) -> int:
            return compare_items(a.representative, b.representative, rules)

        def by_area(a: ItemGroup, b: ItemGroup) -> int:
            if abs(a.total_area - b.total_area) > 0.01:
                return -1 if a.total_area > b.total_area else 1
            return by_rules(a, b)

        cmp = by_area if self.options.optimize_space else by_rules
        return sorted(groups, key=cmp_to_key(cmp))

    def _new_cube(self) -> Cube:
        return Cube(size=self.cube_size)

    def _place_group(self, group: ItemGroup) -> None:
        opts = self.options
        for cube in get_candidate_cubes(self.cubes, opts):
            if try_place_group(cube, group.members, opts.primary_orientation, opts.lock_rotation, self.placed_ids):
                logger.debug(f"Group {group.group_id} placed in existing cube")
                return

        cube = self._new_cube()
        if try_place_group(cube, group.members, opts.primary_orientation, opts.lock_rotation, self.placed_ids):
            self.cubes.append(cube)
            logger.debug(f"Group {group.group_id} placed in new cube #{len(self.cubes)}")
            return

        pending = [m for m in group.members if m.id not in self.placed_ids]
        logger.warning(
            f"Group {group.group_id} does not fit in one cube, "
            f"placing {len(pending)} members individually"
        )
        self.leftovers.extend(pending)

    def _place_single(self, item: Item) -> bool:
        opts = self.options

        def attempt(cube: Cube) -> bool:
            return place_item_in_cube(
                cube,
                item,
                opts.primary_orientation,
                opts.lock_rotation,
                self.sort_rules,
                opts.optimize_space,
            )

        for cube in get_candidate_cubes(self.cubes, opts):
            if attempt(cube):
                self.placed_ids.add(item.id)
                return True

        cube = self._new_cube()
        if attempt(cube):
            self.cubes.append(cube)
            self.placed_ids.add(item.id)
            return True

        item.unpackable_reason = "does not fit in an empty cube"
        logger.error(f"Item {item.id} ({item.name}) could not be placed in an empty cube")
        self.unpackable.append(item)
        return False


def log_solution_summary(outcome: PackingOutcome) -> None:
    for cube in outcome.cubes:
        logger.info(
            f"cube #{cube.id} -> {cube.stats.item_count} items, "
            f"{cube.stats.area_used}/{cube.capacity:.2f} ({cube.stats.utilization_percent}%)"
        )
    summary = summarize(outcome.cubes)
    logger.info(f"total cubes: {summary.total_cubes}")
    logger.info(f"total packed items: {summary.total_items}")
    logger.info(f"avg items per cube: {summary.avg_items_per_cube}")
    logger.info(f"total utilization: {summary.total_utilization}%")
    logger.info(f"excluded oversized: {len(outcome.excluded_oversized)}")
    logger.info(f"stuffed oversized: {len(outcome.stuffed)}")
    logger.info(f"unpackable: {len(outcome.unpackable)}")


def prepare_games(games: List[schemas.PackingGame]) -> List[Item]:
    model_items = [
        Item(
            id=game.id,
            name=game.name,
            version_name=game.version_name,
            game_id=game.game_id,
            version_id=game.version_id,
            dimensions=(
                Dimensions(
                    length=game.dimensions.length,
                    width=game.dimensions.width,
                    depth=game.dimensions.depth,
                    missing=game.dimensions.missing_dimensions,
                )
                if game.dimensions is not None
                else None
            ),
            forced_orientation=game.forced_orientation,
            is_expansion=game.is_expansion,
            base_game_id=game.base_game_id,
            family_ids=list(game.family_ids),
            categories=list(game.categories),
            families=list(game.families),
            mechanics=list(game.mechanics),
            attributes=dict(game.attributes),
        )
        for game in games
    ]
    return model_items


def prepare_options(config: schemas.PackingConfig) -> PackingOptions:
    return PackingOptions(**config.model_dump())


def prepare_sort_rules(rules: List[schemas.SortRuleSchema]) -> List[SortRule]:
    return [SortRule(field=rule.field, direction=rule.direction) for rule in rules]


def _dimensions_out(item: Item) -> schemas.GameDimensions:
    dims = item.dimensions or Dimensions()
    return schemas.GameDimensions(
        length=dims.length,
        width=dims.width,
        depth=dims.depth,
        missing_dimensions=dims.missing,
    )


def _placed_out(placed: PlacedItem) -> schemas.PackedItemOut:
    return schemas.PackedItemOut(
        id=placed.item.id,
        name=placed.item.name,
        position=schemas.PositionOut(x=placed.x, y=placed.y),
        packed_footprint=schemas.FootprintOut(x=placed.width, y=placed.height),
        actual_footprint=schemas.FootprintOut(x=placed.actual_width, y=placed.actual_height),
        depth=placed.depth,
        orientation=placed.orientation,
        oversized_x=placed.oversized_x,
        oversized_y=placed.oversized_y,
        missing_dimensions=bool(placed.item.dimensions and placed.item.dimensions.missing),
    )


def build_result(outcome: PackingOutcome) -> schemas.PackingResult:
    cubes = [
        schemas.PackedCubeOut(
            id=cube.id,
            items=[_placed_out(p) for p in cube.items],
            rows=[
                schemas.CubeRowOut(
                    y=row.y,
                    item_ids=[p.item.id for p in row.items],
                    width_used=row.width_used,
                    height_used=row.height_used,
                )
                for row in cube.rows
            ],
            stats=schemas.CubeStatsOut(
                item_count=cube.stats.item_count,
                area_used=cube.stats.area_used,
                utilization_percent=cube.stats.utilization_percent,
            ),
        )
        for cube in outcome.cubes
    ]
    summary = summarize(outcome.cubes)
    return schemas.PackingResult(
        cubes=cubes,
        excluded_oversized_items=[
            schemas.ExcludedItemOut(id=item.id, name=item.name, dimensions=_dimensions_out(item))
            for item in outcome.excluded_oversized
        ],
        stuffed_oversized_items=[
            schemas.StuffedItemOut(id=s.item.id, name=s.item.name, cube_id=s.cube_id)
            for s in outcome.stuffed
        ],
        unpackable_items=[
            schemas.UnpackableItemOut(id=item.id, name=item.name, reason=item.unpackable_reason or "unknown")
            for item in outcome.unpackable
        ],
        summary=schemas.SummaryOut(
            total_items=summary.total_items,
            total_cubes=summary.total_cubes,
            avg_items_per_cube=summary.avg_items_per_cube,
            total_utilization=summary.total_utilization,
            missing_dimension_count=summary.missing_dimension_count,
            exceeding_capacity_count=summary.exceeding_capacity_count,
        ),
    )


def pack_items(
    items: List[Item],
    options: Optional[PackingOptions] = None,
    sort_rules: Optional[Sequence[SortRule]] = None,
) -> PackingOutcome:
    solver = CubePackingSolver(items, options, sort_rules)
    outcome = solver.solve()
    log_solution_summary(outcome)
    return outcome


def pack_collection(request: schemas.PackingRequest) -> schemas.PackingResult:
    """Validated request in, serializable result out."""
    games = apply_default_dimensions(request.games)
    games = apply_overrides(games, build_override_maps(request.overrides))
    outcome = pack_items(
        prepare_games(games),
        prepare_options(request.config),
        prepare_sort_rules(request.sort_rules),
    )
    return build_result(outcome)
