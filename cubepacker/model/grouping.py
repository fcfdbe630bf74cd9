"""
Grouping of related items so they can share a cube.

Two kinds of groups are built:
- expansion groups: a base game plus the expansions owned for it
- family groups: games of the same series, balanced across families

Groups larger than the allowed area are split into first-fit sub-groups.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

from cubepacker.logger import logger
from cubepacker.config import MAX_GROUP_AREA
from .entities import Item
from .sorting import sort_items_by_area


@dataclass
class ItemGroup:
    group_id: str
    members: List[Item] = field(default_factory=list)

    @property
    def representative(self) -> Item:
        return get_group_representative(self.members)

    @property
    def total_area(self) -> float:
        return get_group_total_area(self.members)


@dataclass
class GroupingResult:
    groups: Dict[str, List[Item]]
    standalone: List[Item]
    grouped_ids: Set[str]


def get_base_id(item_id: str) -> str:
    """'13-2201' -> '13'; ids without a numeric prefix are returned as-is."""
    if item_id and "-" in item_id:
        head = item_id.split("-")[0]
        if head.isdigit():
            return head
    return item_id


def get_group_representative(group: Sequence[Item]) -> Item:
    for item in group:
        if not item.is_expansion:
            return item
    return group[0]


def get_group_total_area(group: Sequence[Item]) -> float:
    return sum(item.area for item in group)


def group_expansions_with_base_items(
    items: Sequence[Item],
    all_ids: Set[str],
) -> tuple[Dict[str, List[Item]], Set[str]]:
    groups: Dict[str, List[Item]] = {}
    expansion_ids: Set[str] = set()
    base_ids = {get_base_id(item_id) for item_id in all_ids}

    for item in items:
        if not (item.is_expansion and item.base_game_id):
            continue
        base_id = item.base_game_id
        if base_id in all_ids or base_id in base_ids:
            groups.setdefault(base_id, []).append(item)
            expansion_ids.add(item.id)

    for item in items:
        if item.is_expansion:
            continue
        base_id = get_base_id(item.id)
        group = groups.get(base_id)
        if group is None:
            continue
        has_base = any(not g.is_expansion and get_base_id(g.id) == base_id for g in group)
        if not has_base:
            group.insert(0, item)

    valid: Dict[str, List[Item]] = {}
    for base_id, members in groups.items():
        has_base = any(not g.is_expansion and get_base_id(g.id) == base_id for g in members)
        if has_base and len(members) > 1:
            valid[base_id] = members
    return valid, expansion_ids


def group_items_by_series(
    items: Sequence[Item],
    exclude_ids: Optional[Set[str]] = None,
) -> Dict[str, List[Item]]:
    """Assign each item to the currently smallest of its families."""
    exclude_ids = exclude_ids or set()
    family_groups: Dict[str, List[Item]] = {}
    item_families: Dict[str, List[str]] = {}

    for item in items:
        if item.id in exclude_ids or not item.family_ids:
            continue
        families: List[str] = []
        for family_id in item.family_ids:
            family_groups.setdefault(family_id, [])
            if family_id not in families:
                families.append(family_id)
        item_families[item.id] = families

    for item in items:
        families = item_families.get(item.id)
        if not families:
            continue
        chosen = min(families, key=lambda fid: len(family_groups[fid]))
        family_groups[chosen].append(item)

    return {fid: members for fid, members in family_groups.items() if len(members) > 1}


def create_item_groups(
    items: Sequence[Item],
    group_expansions: bool,
    group_series: bool,
) -> GroupingResult:
    all_ids = {item.id for item in items}
    groups: Dict[str, List[Item]] = {}
    grouped_ids: Set[str] = set()

    if group_expansions:
        expansion_groups, _ = group_expansions_with_base_items(items, all_ids)
        logger.info(f"Created {len(expansion_groups)} expansion groups")
        for base_id, members in expansion_groups.items():
            groups[f"expansion:{base_id}"] = members
            grouped_ids.update(m.id for m in members)

    if group_series:
        series_groups = group_items_by_series(items, exclude_ids=grouped_ids)
        logger.info(f"Created {len(series_groups)} family groups")
        for family_id, members in series_groups.items():
            groups[f"family:{family_id}"] = members
            grouped_ids.update(m.id for m in members)

    standalone = [item for item in items if item.id not in grouped_ids]
    return GroupingResult(groups=groups, standalone=standalone, grouped_ids=grouped_ids)


def split_oversized_group(group: Sequence[Item], max_area: float = MAX_GROUP_AREA) -> List[List[Item]]:
    if get_group_total_area(group) <= max_area:
        return [list(group)]

    ordered = sort_items_by_area(group)
    base_index = next((i for i, item in enumerate(ordered) if not item.is_expansion), 0)
    sub_groups: List[List[Item]] = [[ordered[base_index]]]
    areas: List[float] = [ordered[base_index].area]

    for i, item in enumerate(ordered):
        if i == base_index:
            continue
        for idx in range(len(sub_groups)):
            if areas[idx] + item.area <= max_area:
                sub_groups[idx].append(item)
                areas[idx] += item.area
                break
        else:
            sub_groups.append([item])
            areas.append(item.area)
    return sub_groups


def build_item_groups(
    items: Sequence[Item],
    group_expansions: bool,
    group_series: bool,
    max_area: float = MAX_GROUP_AREA,
) -> tuple[List[ItemGroup], List[Item]]:
    """Group, then split anything over max_area. Returns (groups, standalone)."""
    if not (group_expansions or group_series):
        return [], list(items)

    result = create_item_groups(items, group_expansions, group_series)
    groups: List[ItemGroup] = []
    for group_id, members in result.groups.items():
        parts = split_oversized_group(members, max_area)
        if len(parts) == 1:
            groups.append(ItemGroup(group_id, parts[0]))
            continue
        logger.info(f"Group {group_id} exceeds {max_area:.1f} sq in, split into {len(parts)}")
        for idx, part in enumerate(parts):
            groups.append(ItemGroup(f"{group_id}_split{idx}", part))
    return groups, result.standalone
