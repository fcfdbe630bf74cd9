"""End-to-end packing tests through the solver and the request boundary."""
import pytest

from cubepacker import schemas
from cubepacker.model.entities import Dimensions, Item, PackingOptions
from cubepacker.model.geometry import all_supported, rectangles_overlap
from cubepacker.model.solver import (
    CubePackingSolver,
    Stage,
    pack_collection,
    pack_items,
    prepare_games,
)
from cubepacker.model.sorting import SortRule


def request(games, **config):
    payload = {"games": games, "config": config}
    return schemas.PackingRequest.model_validate(payload)


def cube_ids(result):
    return [[item.id for item in cube.items] for cube in result.cubes]


class TestScenarios:
    def test_two_squares_share_a_cube(self, make_game):
        result = pack_collection(request([make_game("1-1", 6, 6, 10), make_game("2-1", 6, 6, 10)]))
        assert len(result.cubes) == 1
        cube = result.cubes[0]
        assert [(i.position.x, i.position.y) for i in cube.items] == [(0.0, 0.0), (6.0, 0.0)]
        assert cube.stats.area_used == pytest.approx(72.0)
        assert result.summary.total_items == 2

    def test_oversized_item_is_excluded(self, make_game):
        result = pack_collection(request([make_game("1-1", 13, 13, 14)]))
        assert result.cubes == []
        assert [i.id for i in result.excluded_oversized_items] == ["1-1"]
        assert result.excluded_oversized_items[0].dimensions.length == 13

    def test_oversized_item_is_stuffed_when_allowed(self, make_game):
        result = pack_collection(request([make_game("1-1", 13, 13, 14)], fitOversized=True))
        assert len(result.cubes) == 1
        packed = result.cubes[0].items[0]
        assert (packed.packed_footprint.x, packed.packed_footprint.y) == (12.8, 12.8)
        assert (packed.actual_footprint.x, packed.actual_footprint.y) == (13, 13)
        assert packed.oversized_x and packed.oversized_y
        assert [(s.id, s.cube_id) for s in result.stuffed_oversized_items] == [("1-1", 1)]
        assert result.excluded_oversized_items == []

    def test_narrow_item_uses_the_floor_first(self, make_game):
        games = [
            make_game("1-1", 10, 3, 11),
            make_game("2-1", 2, 8, 9, forcedOrientation="vertical"),
        ]
        result = pack_collection(request(games, primaryOrientation="horizontal"))
        positions = {i.id: (i.position.x, i.position.y) for i in result.cubes[0].items}
        assert positions == {"1-1": (0.0, 0.0), "2-1": (10.0, 0.0)}

    def test_expansion_lands_with_base(self, make_game):
        games = [
            make_game("13-1", 10, 6, 11),
            make_game("50-1", 12.8, 6, 13),
            make_game("926-1", 5, 5, 8, isExpansion=True, baseGameId="13"),
        ]
        result = pack_collection(request(games, groupExpansions=True))
        [with_base] = [ids for ids in cube_ids(result) if "13-1" in ids]
        assert "926-1" in with_base

    def test_invalid_dimensions_are_reported(self, make_game):
        games = [make_game("1-1", -1, 5, 5), make_game("2-1", 6, 6, 10)]
        result = pack_collection(request(games))
        assert [(u.id, u.reason) for u in result.unpackable_items] == [("1-1", "invalid dimensions")]
        assert cube_ids(result) == [["2-1"]]

    def test_missing_dimensions_get_defaults(self):
        result = pack_collection(request([{"id": "1-1", "name": "Mystery"}]))
        packed = result.cubes[0].items[0]
        assert (packed.packed_footprint.x, packed.packed_footprint.y) == (1.8, 12.8)
        assert packed.missing_dimensions
        assert result.summary.missing_dimension_count == 1


class TestSelectionModes:
    """Backfilling older cubes versus keeping the user order."""

    games = [
        {"id": "1-1", "name": "Alpha", "dimensions": {"length": 12.8, "width": 6, "depth": 14}},
        {"id": "2-1", "name": "Bravo", "dimensions": {"length": 12.8, "width": 8, "depth": 14}},
        {"id": "3-1", "name": "Charlie", "dimensions": {"length": 12.8, "width": 6, "depth": 14}},
    ]

    def _pack(self, **config):
        payload = {
            "games": self.games,
            "config": config,
            "sortRules": [{"field": "gameName", "order": "asc"}],
        }
        return pack_collection(schemas.PackingRequest.model_validate(payload))

    def test_default_backfills_previous_cube(self):
        assert cube_ids(self._pack()) == [["1-1", "3-1"], ["2-1"]]

    def test_respect_sort_order_never_backfills(self):
        assert cube_ids(self._pack(respectSortOrder=True)) == [["1-1"], ["2-1"], ["3-1"]]


class TestInvariants:
    def _items(self):
        sizes = [
            (6, 4), (3, 9), (5, 5), (2, 7), (4, 4), (8, 2), (3, 3), (6, 2), (1, 5),
            (4, 6), (7, 7), (2, 2), (5, 3), (9, 4), (3, 5), (6, 6), (1, 1), (4, 8),
        ]
        items = []
        for idx, (w, h) in enumerate(sizes):
            items.append(
                Item(
                    id=f"{idx + 1}-1",
                    name=f"Game {idx:02d}",
                    dimensions=Dimensions(w, h, max(w, h) + 2),
                    family_ids=["f1"] if idx % 4 == 0 else [],
                )
            )
        return items

    @pytest.mark.parametrize(
        "options",
        [
            PackingOptions(),
            PackingOptions(optimize_space=True),
            PackingOptions(respect_sort_order=True, lock_rotation=True),
            PackingOptions(group_series=True, primary_orientation="horizontal"),
        ],
    )
    def test_layout_invariants(self, options):
        outcome = pack_items(self._items(), options, [SortRule("gameName")])
        packed = [p.item.id for cube in outcome.cubes for p in cube.items]
        assert sorted(packed) == sorted(i.id for i in self._items())

        for cube in outcome.cubes:
            assert cube.occupied_area <= cube.capacity + 1e-6
            assert cube.occupied_area == pytest.approx(sum(p.area for p in cube.items))
            assert all_supported(cube.items)
            for i, first in enumerate(cube.items):
                for second in cube.items[i + 1:]:
                    assert not rectangles_overlap(first, second)

    def test_deterministic(self):
        first = pack_items(self._items(), PackingOptions(optimize_space=True))
        second = pack_items(self._items(), PackingOptions(optimize_space=True))
        layout = lambda outcome: [[(p.item.id, p.x, p.y, p.width) for p in c.items] for c in outcome.cubes]
        assert layout(first) == layout(second)

    def test_solver_reaches_done(self):
        solver = CubePackingSolver(self._items())
        solver.solve()
        assert solver.stage == Stage.DONE
        assert [c.id for c in solver.cubes] == list(range(1, len(solver.cubes) + 1))


class TestInputEdgeCases:
    def test_duplicate_id_is_reported(self, make_game):
        games = [make_game("1-1", 6, 6, 10), make_game("1-1", 5, 5, 8), make_game("2-1", 4, 4, 6)]
        result = pack_collection(request(games))
        assert cube_ids(result) == [["1-1", "2-1"]]
        assert [(u.id, u.reason) for u in result.unpackable_items] == [("1-1", "duplicate id")]

    def test_mixed_attribute_types_still_pack(self):
        items = [
            Item(id="1-1", dimensions=Dimensions(4, 4, 6), attributes={"tags": ["party"]}),
            Item(id="2-1", dimensions=Dimensions(4, 4, 6), attributes={"tags": "family"}),
        ]
        outcome = pack_items(items, PackingOptions(), [SortRule("tags")])
        assert [p.item.id for p in outcome.cubes[0].items] == ["1-1", "2-1"]
        assert outcome.unpackable == []


class TestGroupFallback:
    def test_group_too_big_for_one_cube_degrades_to_standalone(self):
        # 3 x 48 sq in stays under the split limit but only two fit side by side
        items = [
            Item(id="13-1", dimensions=Dimensions(8, 6, 9)),
            Item(id="14-1", dimensions=Dimensions(8, 6, 9), is_expansion=True, base_game_id="13"),
            Item(id="15-1", dimensions=Dimensions(8, 6, 9), is_expansion=True, base_game_id="13"),
        ]
        outcome = pack_items(items, PackingOptions(group_expansions=True, lock_rotation=True))
        packed = sorted(p.item.id for cube in outcome.cubes for p in cube.items)
        assert packed == ["13-1", "14-1", "15-1"]
        assert len(outcome.cubes) == 2


class TestPrepareGames:
    def test_request_fields_reach_items(self):
        game = schemas.PackingGame.model_validate(
            {
                "id": "13-2201",
                "name": "Catan",
                "gameId": 13,
                "isExpansion": False,
                "familyIds": [3],
                "dimensions": {"length": 11.7, "width": 11.7, "height": 2.8},
                "attributes": {"rating": 7.1},
            }
        )
        [item] = prepare_games([game])
        assert item.game_id == "13"
        assert item.family_ids == ["3"]
        assert item.dimensions.depth == 2.8
        assert item.attributes == {"rating": 7.1}
