from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from functools import cmp_to_key
from typing import Any, Callable, List, Optional, Sequence

from .entities import Item

MISSING_ID = sys.maxsize


class SortField(str, Enum):
    GAME_NAME = "gameName"
    VERSION_NAME = "versionName"
    GAME_ID = "gameId"
    VERSION_ID = "versionId"
    CATEGORIES = "categories"
    FAMILIES = "families"
    MECHANICS = "mechanics"


@dataclass(frozen=True)
class SortRule:
    field: str
    direction: str = "asc"

    @property
    def sign(self) -> int:
        return -1 if self.direction == "desc" else 1


def _normalize(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        return value.lower()
    return value


def _first(values: Sequence[str]) -> str:
    return _normalize(values[0] if values else "")


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    return None


def _version_id_of(item: Item) -> Optional[str]:
    if item.version_id:
        return item.version_id
    if "-" in item.id:
        candidate = item.id.rsplit("-", 1)[1]
        if candidate and candidate not in ("default", "no-version"):
            return candidate
    return None


def base_game_id_of(item: Item) -> Optional[str]:
    """Numeric catalog id of the game an item (or expansion) belongs to."""
    prefix = item.id.split("-")[0] if item.id else None
    for candidate in (item.base_game_id, prefix, item.game_id):
        if candidate and str(candidate).isdigit():
            return str(candidate)
    return None


def _game_id_value(item: Item) -> int:
    parsed = _parse_int(base_game_id_of(item))
    return parsed if parsed is not None else MISSING_ID


def _version_id_value(item: Item) -> Any:
    version_id = _version_id_of(item)
    if not version_id or version_id == "default":
        return MISSING_ID
    parsed = _parse_int(version_id)
    return parsed if parsed is not None else version_id


_FIELD_GETTERS: dict[SortField, Callable[[Item], Any]] = {
    SortField.GAME_NAME: lambda item: _normalize(item.name),
    SortField.VERSION_NAME: lambda item: _normalize(item.version_name),
    SortField.GAME_ID: _game_id_value,
    SortField.VERSION_ID: _version_id_value,
    SortField.CATEGORIES: lambda item: _first(item.categories),
    SortField.FAMILIES: lambda item: _first(item.families),
    SortField.MECHANICS: lambda item: _first(item.mechanics),
}


def get_sort_value(item: Item, field: str) -> Any:
    try:
        getter = _FIELD_GETTERS[SortField(field)]
    except ValueError:
        return _normalize(item.attributes.get(field))
    return getter(item)


def _compare_values(val1: Any, val2: Any) -> int:
    # Numbers order before strings when a field mixes both
    num1 = isinstance(val1, (int, float))
    num2 = isinstance(val2, (int, float))
    if num1 != num2:
        return -1 if num1 else 1
    try:
        if val1 < val2:
            return -1
        if val1 > val2:
            return 1
        return 0
    except TypeError:
        # Unorderable attribute values fall back to type name, then text
        key1 = (type(val1).__name__, str(val1))
        key2 = (type(val2).__name__, str(val2))
        return (key1 > key2) - (key1 < key2)


def compare_items(item1: Item, item2: Item, sort_rules: Sequence[SortRule]) -> int:
    for rule in sort_rules:
        if not rule or not rule.field:
            continue
        val1 = get_sort_value(item1, rule.field)
        val2 = get_sort_value(item2, rule.field)
        if val1 == val2:
            continue
        if val1 is None:
            return rule.sign
        if val2 is None:
            return -rule.sign
        result = _compare_values(val1, val2)
        if result:
            return result * rule.sign
    return 0


def sort_items(items: Sequence[Item], sort_rules: Sequence[SortRule]) -> List[Item]:
    return sorted(items, key=cmp_to_key(lambda a, b: compare_items(a, b, sort_rules)))


def sort_items_by_area(items: Sequence[Item]) -> List[Item]:
    return sorted(items, key=lambda item: -item.area)


def sort_items_for_placement(
    items: Sequence[Item],
    sort_rules: Sequence[SortRule],
    optimize_space: bool,
) -> List[Item]:
    """User order, or largest-first with the user order as tiebreak."""
    if not optimize_space:
        return sort_items(items, sort_rules)

    def cmp(a: Item, b: Item) -> int:
        if abs(a.area - b.area) > 0.01:
            return -1 if a.area > b.area else 1
        return compare_items(a, b, sort_rules)

    return sorted(items, key=cmp_to_key(cmp))
