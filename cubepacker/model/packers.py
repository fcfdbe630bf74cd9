"""
Packers module - provides the cube packing building blocks.

This module re-exports the placement pieces from their respective modules:
- sorting: user sort rules and area ordering
- grouping: expansion and family groups, oversized-group splitting
- placement: direct placement, aggressive reorganization, group placement
- stability: wider-under-narrower swap repair
- cubes: candidate cube selection, finalize, summaries
"""

from __future__ import annotations

# Re-export from sorting
from .sorting import (
    SortField,
    SortRule,
    compare_items,
    sort_items,
    sort_items_by_area,
    sort_items_for_placement,
)

# Re-export from grouping
from .grouping import (
    ItemGroup,
    build_item_groups,
    create_item_groups,
    split_oversized_group,
)

# Re-export from placement
from .placement import (
    place_item_in_cube,
    try_aggressive_reorganization,
    try_place_group,
    try_place_item,
)

# Re-export from stability
from .stability import check_and_improve_stability, try_swap_for_stability

# Re-export from cubes
from .cubes import (
    CollectionSummary,
    StuffedItem,
    finalize_cubes,
    get_candidate_cubes,
    get_oversized_stuffed_items,
    summarize,
)

__all__ = [
    # sorting
    "SortField",
    "SortRule",
    "compare_items",
    "sort_items",
    "sort_items_by_area",
    "sort_items_for_placement",
    # grouping
    "ItemGroup",
    "build_item_groups",
    "create_item_groups",
    "split_oversized_group",
    # placement
    "place_item_in_cube",
    "try_aggressive_reorganization",
    "try_place_group",
    "try_place_item",
    # stability
    "check_and_improve_stability",
    "try_swap_for_stability",
    # cubes
    "CollectionSummary",
    "StuffedItem",
    "finalize_cubes",
    "get_candidate_cubes",
    "get_oversized_stuffed_items",
    "summarize",
]
